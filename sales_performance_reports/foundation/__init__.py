"""Foundational building blocks for the sales performance reports.

This package exposes the fact and dimension contracts, the per-entity
aggregator, the derived-metric calculator and the rule tables used to
label customers and products.
"""

from .aggregation import (
    AggregationResult,
    EntityAggregate,
    ExclusionSummary,
    SalesAggregator,
    aggregate_sales,
)
from .contracts import (
    CustomerDimension,
    DimensionContract,
    FactContract,
    ProductDimension,
    SalesFact,
)
from .errors import (
    ConfigurationError,
    InvalidRecordError,
    MissingReferenceError,
    ReportError,
)
from .metrics import DerivedMetrics, derive_metrics, derive_metrics_batch, guarded_ratio
from .segmentation import (
    RevenueBandThresholds,
    Rule,
    RuleTable,
    age_group_rules,
    customer_segment_rules,
    revenue_band_rules,
)

__all__ = [
    "AggregationResult",
    "EntityAggregate",
    "ExclusionSummary",
    "SalesAggregator",
    "aggregate_sales",
    "CustomerDimension",
    "DimensionContract",
    "FactContract",
    "ProductDimension",
    "SalesFact",
    "ConfigurationError",
    "InvalidRecordError",
    "MissingReferenceError",
    "ReportError",
    "DerivedMetrics",
    "derive_metrics",
    "derive_metrics_batch",
    "guarded_ratio",
    "RevenueBandThresholds",
    "Rule",
    "RuleTable",
    "age_group_rules",
    "customer_segment_rules",
    "revenue_band_rules",
]
