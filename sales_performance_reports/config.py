"""Report build configuration."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional

from sales_performance_reports.foundation.errors import ConfigurationError
from sales_performance_reports.foundation.segmentation import (
    RevenueBandThresholds,
    age_group_rules,
)

DEFAULT_MID_THRESHOLD = Decimal("10000")
DEFAULT_HIGH_THRESHOLD = Decimal("50000")


def default_revenue_bands() -> RevenueBandThresholds:
    return RevenueBandThresholds(DEFAULT_MID_THRESHOLD, DEFAULT_HIGH_THRESHOLD)


@dataclass
class ReportConfig:
    """Configuration for customer and product report builds.

    Attributes
    ----------
    revenue_bands:
        Product revenue band cut points.
    vip_min_lifespan_months:
        Minimum lifespan for the VIP and Regular segments.
    vip_min_total_sales:
        Total sales a long-lived customer must exceed to be VIP.
    age_band_floor / age_band_ceiling / age_band_width:
        Age group bins: "Under <floor>", fixed-width bands up to
        ``ceiling``, then "<ceiling> and above".
    strict:
        Raise on the first excluded fact row instead of counting it.
    parallel / parallel_threshold / n_workers:
        Multiprocessing controls for metric derivation.
    """

    revenue_bands: RevenueBandThresholds = field(default_factory=default_revenue_bands)
    vip_min_lifespan_months: int = 12
    vip_min_total_sales: Decimal = Decimal("5000")
    age_band_floor: int = 20
    age_band_ceiling: int = 50
    age_band_width: int = 10
    strict: bool = False
    parallel: bool = False
    parallel_threshold: int = 100_000
    n_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.revenue_bands, RevenueBandThresholds):
            raise ConfigurationError(
                f"revenue_bands must be RevenueBandThresholds, got {self.revenue_bands!r}"
            )
        if self.vip_min_lifespan_months < 0:
            raise ConfigurationError(
                f"vip_min_lifespan_months cannot be negative: {self.vip_min_lifespan_months}"
            )
        if not isinstance(self.vip_min_total_sales, Decimal):
            self.vip_min_total_sales = _to_decimal(self.vip_min_total_sales)
        if not self.vip_min_total_sales.is_finite():
            raise ConfigurationError(
                f"vip_min_total_sales must be finite: {self.vip_min_total_sales}"
            )
        # Raises ConfigurationError for unusable bins
        age_group_rules(
            floor=self.age_band_floor,
            ceiling=self.age_band_ceiling,
            width=self.age_band_width,
        )
        if self.parallel_threshold < 1:
            raise ConfigurationError(
                f"parallel_threshold must be positive: {self.parallel_threshold}"
            )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ReportConfig":
        """Build a config from a JSON-style mapping.

        ``revenue_bands`` may be given as ``{"mid_threshold": ..,
        "high_threshold": ..}``. Any other
        ``revenue_bands`` value and unknown keys raise
        :class:`ConfigurationError`.
        """

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")

        values = dict(mapping)
        bands = values.get("revenue_bands")
        if isinstance(bands, Mapping):
            try:
                values["revenue_bands"] = RevenueBandThresholds(
                    mid_threshold=_to_decimal(bands["mid_threshold"]),
                    high_threshold=_to_decimal(bands["high_threshold"]),
                )
            except KeyError as exc:
                raise ConfigurationError(
                    f"revenue_bands is missing {exc.args[0]}"
                ) from exc
        if "vip_min_total_sales" in values:
            values["vip_min_total_sales"] = _to_decimal(values["vip_min_total_sales"])
        return cls(**values)

    def as_dict(self) -> dict[str, Any]:
        return {
            "revenue_bands": self.revenue_bands.as_dict(),
            "vip_min_lifespan_months": self.vip_min_lifespan_months,
            "vip_min_total_sales": str(self.vip_min_total_sales),
            "age_band_floor": self.age_band_floor,
            "age_band_ceiling": self.age_band_ceiling,
            "age_band_width": self.age_band_width,
            "strict": self.strict,
            "parallel": self.parallel,
            "parallel_threshold": self.parallel_threshold,
            "n_workers": self.n_workers,
        }


def load_config(path: str | Path) -> ReportConfig:
    """Read a :class:`ReportConfig` from a JSON file."""

    with Path(path).open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, Mapping):
        raise ConfigurationError(f"Expected a JSON object in {path}")
    return ReportConfig.from_mapping(payload)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError(f"Expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except ArithmeticError as exc:
        raise ConfigurationError(f"Expected a number, got {value!r}") from exc
