"""Customer and product performance reports.

Each report runs the same pipeline: aggregate fact rows per entity, derive
month spans and ratio KPIs, label the entity with a rule table and join the
result with the entity's dimension attributes.
"""

from .customer import CUSTOMER_REPORT_FIELDS, CustomerReportRecord, build_customer_report
from .pipeline import EntityProfile, ReportPipeline, ReportResult
from .product import PRODUCT_REPORT_FIELDS, ProductReportRecord, build_product_report
from .summary import ReportSummary, summarize_report

__all__ = [
    "CUSTOMER_REPORT_FIELDS",
    "CustomerReportRecord",
    "build_customer_report",
    "EntityProfile",
    "ReportPipeline",
    "ReportResult",
    "PRODUCT_REPORT_FIELDS",
    "ProductReportRecord",
    "build_product_report",
    "ReportSummary",
    "summarize_report",
]
