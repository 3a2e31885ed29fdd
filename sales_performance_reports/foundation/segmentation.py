"""Ordered rule tables for segment, band and bucket labels.

A :class:`RuleTable` is an ordered list of ``(predicate, label)`` rules.
Classification walks the rules top to bottom and returns the label of the
first rule whose predicate holds. The last rule of every table has no
predicate and always matches, so each subject maps to exactly one label.

Thresholds live in the tables rather than in branching code, so they can be
inspected, swapped and tested on their own.

Quick Start
-----------
>>> from decimal import Decimal
>>> table = revenue_band_rules(RevenueBandThresholds(Decimal("1000"), Decimal("5000")))
>>> table.labels
('High', 'Mid', 'Low')
>>> table.describe()
['High: total_sales >= 5000', 'Mid: 1000 <= total_sales < 5000', 'Low: otherwise']
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Generic, Optional, TypeVar

from sales_performance_reports.foundation.errors import ConfigurationError
from sales_performance_reports.foundation.metrics import DerivedMetrics

T = TypeVar("T")

VIP = "VIP"
REGULAR = "Regular"
NEW = "New"

HIGH = "High"
MID = "Mid"
LOW = "Low"

UNKNOWN_AGE = "Unknown"


@dataclass(frozen=True)
class Rule(Generic[T]):
    """One classification rule; ``predicate=None`` always matches."""

    label: str
    predicate: Optional[Callable[[T], bool]] = None
    description: str = "otherwise"

    def matches(self, subject: T) -> bool:
        return self.predicate is None or bool(self.predicate(subject))


@dataclass(frozen=True)
class RuleTable(Generic[T]):
    """First-match classifier over an ordered sequence of rules."""

    name: str
    rules: tuple[Rule[T], ...]

    def __post_init__(self) -> None:
        if not self.rules:
            raise ConfigurationError(f"Rule table {self.name!r} has no rules")
        if self.rules[-1].predicate is not None:
            raise ConfigurationError(
                f"Last rule of {self.name!r} must be an unconditional catch-all"
            )
        labels = [rule.label for rule in self.rules]
        if len(set(labels)) != len(labels):
            raise ConfigurationError(f"Rule table {self.name!r} repeats a label: {labels}")

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(rule.label for rule in self.rules)

    def classify(self, subject: T) -> str:
        return next(rule.label for rule in self.rules if rule.matches(subject))

    def describe(self) -> list[str]:
        """Return ``"label: condition"`` lines, in evaluation order."""

        return [f"{rule.label}: {rule.description}" for rule in self.rules]


@dataclass(frozen=True)
class RevenueBandThresholds:
    """Revenue band cut points for the product report.

    Attributes
    ----------
    mid_threshold:
        Lowest ``total_sales`` that counts as Mid (inclusive).
    high_threshold:
        Lowest ``total_sales`` that counts as High (inclusive).

    Raises
    ------
    ConfigurationError
        If either threshold is negative, not finite, or ``mid_threshold >= high_threshold``.
    """

    mid_threshold: Decimal
    high_threshold: Decimal

    def __post_init__(self) -> None:
        for name in ("mid_threshold", "high_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
                raise ConfigurationError(f"{name} must be numeric, got {value!r}")
            if not isinstance(value, Decimal):
                value = Decimal(str(value))
                object.__setattr__(self, name, value)
            if not value.is_finite():
                raise ConfigurationError(f"{name} must be finite, got {value}")
        if self.mid_threshold < 0 or self.high_threshold < 0:
            raise ConfigurationError(
                f"Revenue thresholds cannot be negative: mid={self.mid_threshold}, "
                f"high={self.high_threshold}"
            )
        if self.mid_threshold >= self.high_threshold:
            raise ConfigurationError(
                f"mid_threshold ({self.mid_threshold}) must be strictly below "
                f"high_threshold ({self.high_threshold})"
            )

    def as_dict(self) -> dict[str, str]:
        return {
            "mid_threshold": str(self.mid_threshold),
            "high_threshold": str(self.high_threshold),
        }


def customer_segment_rules(
    min_lifespan_months: int = 12, min_total_sales: Decimal = Decimal("5000")
) -> RuleTable[DerivedMetrics]:
    """VIP / Regular / New by lifespan and total sales.

    >>> customer_segment_rules().describe()
    ['VIP: lifespan_months >= 12 and total_sales > 5000', 'Regular: lifespan_months >= 12', 'New: otherwise']
    """

    return RuleTable(
        name="customer_segment",
        rules=(
            Rule(
                VIP,
                lambda m: m.lifespan_months >= min_lifespan_months
                and m.total_sales > min_total_sales,
                f"lifespan_months >= {min_lifespan_months} "
                f"and total_sales > {min_total_sales}",
            ),
            Rule(
                REGULAR,
                lambda m: m.lifespan_months >= min_lifespan_months,
                f"lifespan_months >= {min_lifespan_months}",
            ),
            Rule(NEW),
        ),
    )


def revenue_band_rules(thresholds: RevenueBandThresholds) -> RuleTable[DerivedMetrics]:
    """High / Mid / Low by total sales. Both cut points are inclusive."""

    high = thresholds.high_threshold
    mid = thresholds.mid_threshold
    return RuleTable(
        name="revenue_band",
        rules=(
            Rule(HIGH, lambda m: m.total_sales >= high, f"total_sales >= {high}"),
            Rule(
                MID,
                lambda m: m.total_sales >= mid,
                f"{mid} <= total_sales < {high}",
            ),
            Rule(LOW),
        ),
    )


def age_group_rules(
    floor: int = 20, ceiling: int = 50, width: int = 10
) -> RuleTable[Optional[int]]:
    """Fixed-width age bands between ``floor`` and ``ceiling``.

    >>> table = age_group_rules()
    >>> table.labels
    ('Unknown', 'Under 20', '20-29', '30-39', '40-49', '50 and above')
    >>> table.classify(34), table.classify(None), table.classify(71)
    ('30-39', 'Unknown', '50 and above')
    """

    if width <= 0 or floor >= ceiling or (ceiling - floor) % width:
        raise ConfigurationError(
            f"Age bands need a positive width dividing ceiling - floor "
            f"(floor={floor}, ceiling={ceiling}, width={width})"
        )

    rules: list[Rule[Optional[int]]] = [
        Rule(UNKNOWN_AGE, lambda age: age is None, "age is unknown"),
        Rule(f"Under {floor}", lambda age: age < floor, f"age < {floor}"),
    ]
    for lower in range(floor, ceiling, width):
        upper = lower + width
        rules.append(
            Rule(
                f"{lower}-{upper - 1}",
                # Bind loop bounds per rule
                lambda age, upper=upper: age < upper,
                f"{lower} <= age < {upper}",
            )
        )
    rules.append(Rule(f"{ceiling} and above"))
    return RuleTable(name="age_group", rules=tuple(rules))

