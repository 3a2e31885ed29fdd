"""Per-entity aggregation of sales fact rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Collection, Iterable, Literal

from sales_performance_reports.foundation.contracts import EntityKey, SalesFact
from sales_performance_reports.foundation.errors import (
    InvalidRecordError,
    MissingReferenceError,
    RowError,
)

logger = logging.getLogger(__name__)

EntityField = Literal["customer_key", "product_key"]

MONEY_PRECISION = Decimal("0.01")


@dataclass(slots=True)
class EntityAggregate:
    """Raw totals for one customer or product.

    Attributes
    ----------
    entity_key:
        Key of the customer or product the rows were grouped by.
    total_orders:
        Count of distinct order numbers.
    total_sales:
        Sum of ``sales_amount``, rounded to cents.
    total_quantity:
        Sum of ``quantity``.
    first_order_date / last_order_date:
        Earliest and latest order date among the entity's rows.
    distinct_counterparts:
        Distinct products bought (customer aggregates) or distinct
        customers buying (product aggregates).
    """

    entity_key: EntityKey
    total_orders: int
    total_sales: Decimal
    total_quantity: int
    first_order_date: date
    last_order_date: date
    distinct_counterparts: int


@dataclass
class ExclusionSummary:
    """Fact rows left out of aggregation and why."""

    total_rows: int = 0
    undated: int = 0
    missing_reference: int = 0
    invalid_record: int = 0
    errors: list[RowError] = field(default_factory=list)

    @property
    def total_excluded(self) -> int:
        return self.undated + self.missing_reference + self.invalid_record

    @property
    def included_rows(self) -> int:
        return self.total_rows - self.total_excluded

    def as_dict(self) -> dict[str, int]:
        return {
            "total_rows": self.total_rows,
            "included_rows": self.included_rows,
            "undated": self.undated,
            "missing_reference": self.missing_reference,
            "invalid_record": self.invalid_record,
            "total_excluded": self.total_excluded,
        }


@dataclass
class AggregationResult:
    aggregates: list[EntityAggregate]
    exclusions: ExclusionSummary


class SalesAggregator:
    """Group fact rows by entity and compute raw totals.

    Parameters
    ----------
    entity_field:
        Fact attribute to group by (``"customer_key"`` or ``"product_key"``).
    known_keys:
        Keys present in the entity's dimension. Rows referencing any other
        key are excluded as :class:`MissingReferenceError`. ``None`` skips
        the check.
    strict:
        Re-raise the first row error instead of excluding the row.

    Rows are checked in this order: negative quantity or amount, unknown
    entity key, then missing order date. Rows with no order date are not
    errors; they have not occurred yet and are only counted as ``undated``.
    """

    def __init__(
        self,
        entity_field: EntityField,
        known_keys: Collection[EntityKey] | None = None,
        *,
        strict: bool = False,
    ) -> None:
        if entity_field == "customer_key":
            self.counterpart_field = "product_key"
        elif entity_field == "product_key":
            self.counterpart_field = "customer_key"
        else:
            raise ValueError(f"Unsupported entity field: {entity_field}")
        self.entity_field = entity_field
        self.known_keys = None if known_keys is None else frozenset(known_keys)
        self.strict = strict

    def aggregate(self, facts: Iterable[SalesFact]) -> AggregationResult:
        exclusions = ExclusionSummary()
        grouped: dict[EntityKey, dict[str, object]] = {}

        for idx, fact in enumerate(facts):
            exclusions.total_rows += 1
            entity_key = getattr(fact, self.entity_field)
            try:
                self._check_row(idx, entity_key, fact)
            except InvalidRecordError as exc:
                if self.strict:
                    raise
                exclusions.invalid_record += 1
                exclusions.errors.append(exc)
                logger.warning(f"Excluding fact row: {exc}")
                continue
            except MissingReferenceError as exc:
                if self.strict:
                    raise
                exclusions.missing_reference += 1
                exclusions.errors.append(exc)
                logger.warning(f"Excluding fact row: {exc}")
                continue

            if fact.order_date is None:
                exclusions.undated += 1
                continue

            bucket = grouped.setdefault(
                entity_key,
                {
                    "orders": set(),
                    "counterparts": set(),
                    "total_sales": Decimal("0"),
                    "total_quantity": 0,
                    "first_order_date": fact.order_date,
                    "last_order_date": fact.order_date,
                },
            )
            bucket["orders"].add(fact.order_number)
            bucket["counterparts"].add(getattr(fact, self.counterpart_field))
            bucket["total_sales"] += fact.sales_amount
            bucket["total_quantity"] += fact.quantity
            bucket["first_order_date"] = min(bucket["first_order_date"], fact.order_date)
            bucket["last_order_date"] = max(bucket["last_order_date"], fact.order_date)

        aggregates = [
            EntityAggregate(
                entity_key=entity_key,
                total_orders=len(payload["orders"]),
                total_sales=payload["total_sales"].quantize(
                    MONEY_PRECISION, rounding=ROUND_HALF_UP
                ),
                total_quantity=int(payload["total_quantity"]),
                first_order_date=payload["first_order_date"],
                last_order_date=payload["last_order_date"],
                distinct_counterparts=len(payload["counterparts"]),
            )
            for entity_key, payload in grouped.items()
        ]
        aggregates.sort(key=lambda aggregate: _sort_key(aggregate.entity_key))

        if exclusions.total_excluded:
            logger.info(
                f"Aggregated {len(aggregates)} entities by {self.entity_field} "
                f"from {exclusions.total_rows} rows "
                f"({exclusions.total_excluded} excluded: {exclusions.undated} undated, "
                f"{exclusions.missing_reference} missing reference, "
                f"{exclusions.invalid_record} invalid)"
            )
        return AggregationResult(aggregates=aggregates, exclusions=exclusions)

    def _check_row(self, idx: int, entity_key: EntityKey, fact: SalesFact) -> None:
        if fact.quantity < 0:
            raise InvalidRecordError(
                f"Quantity cannot be negative: {fact.quantity} "
                f"(row {idx}, order {fact.order_number})",
                index=idx,
                key=entity_key,
            )
        if fact.sales_amount < 0:
            raise InvalidRecordError(
                f"Sales amount cannot be negative: {fact.sales_amount} "
                f"(row {idx}, order {fact.order_number})",
                index=idx,
                key=entity_key,
            )
        if self.known_keys is not None and entity_key not in self.known_keys:
            raise MissingReferenceError(
                f"Unknown {self.entity_field} {entity_key!r} "
                f"(row {idx}, order {fact.order_number})",
                index=idx,
                key=entity_key,
            )


def aggregate_sales(
    facts: Iterable[SalesFact],
    entity_field: EntityField,
    known_keys: Collection[EntityKey] | None = None,
    *,
    strict: bool = False,
) -> AggregationResult:
    """Aggregate ``facts`` per ``entity_field``.

    Only entities with at least one dated, valid row appear in the result,
    sorted by key (integer keys before string keys).

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> facts = [
    ...     SalesFact("SO1", date(2024, 1, 5), 1, 10, 2, Decimal("40")),
    ...     SalesFact("SO1", date(2024, 1, 5), 1, 11, 1, Decimal("15")),
    ...     SalesFact("SO2", None, 1, 10, 1, Decimal("20")),
    ... ]
    >>> result = aggregate_sales(facts, "customer_key")
    >>> result.aggregates[0].total_orders, result.aggregates[0].total_sales
    (1, Decimal('55.00'))
    >>> result.exclusions.undated
    1
    """

    aggregator = SalesAggregator(entity_field, known_keys, strict=strict)
    return aggregator.aggregate(facts)


def _sort_key(entity_key: EntityKey) -> tuple[bool, EntityKey]:
    # Mixed int/str key sets order integers first
    return (isinstance(entity_key, str), entity_key)
