"""Customer and product performance reports from a sales star schema."""

from sales_performance_reports.config import ReportConfig
from sales_performance_reports.foundation import (
    ConfigurationError,
    CustomerDimension,
    InvalidRecordError,
    MissingReferenceError,
    ProductDimension,
    RevenueBandThresholds,
    SalesFact,
)
from sales_performance_reports.reports import (
    ReportResult,
    build_customer_report,
    build_product_report,
    summarize_report,
)

__all__ = [
    "ReportConfig",
    "ConfigurationError",
    "CustomerDimension",
    "InvalidRecordError",
    "MissingReferenceError",
    "ProductDimension",
    "RevenueBandThresholds",
    "SalesFact",
    "ReportResult",
    "build_customer_report",
    "build_product_report",
    "summarize_report",
]
