"""Customer performance report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sales_performance_reports.config import ReportConfig
from sales_performance_reports.foundation.calendar import whole_years_between
from sales_performance_reports.foundation.contracts import (
    CustomerDimension,
    DimensionContract,
    EntityKey,
    SalesFact,
)
from sales_performance_reports.foundation.metrics import DerivedMetrics
from sales_performance_reports.foundation.segmentation import (
    RuleTable,
    age_group_rules,
    customer_segment_rules,
)
from sales_performance_reports.reports.pipeline import (
    EntityProfile,
    ReportPipeline,
    ReportResult,
)


@dataclass(frozen=True)
class CustomerReportRecord:
    """One row of the customer report. Field order is the published order."""

    customer_key: EntityKey
    customer_number: str
    customer_name: str
    age: int | None
    age_group: str
    customer_segment: str
    total_orders: int
    total_sales: Decimal
    total_quantity: int
    total_products: int
    last_order_date: date
    lifespan_months: int
    recency_months: int
    avg_order_value: Decimal
    avg_monthly_spend: Decimal

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


CUSTOMER_REPORT_FIELDS = tuple(item.name for item in fields(CustomerReportRecord))


def customer_age(customer: CustomerDimension, reference_date: date) -> int | None:
    """Whole years from birth date to ``reference_date``, else the stored age."""

    if customer.birth_date is not None:
        return whole_years_between(customer.birth_date, reference_date)
    return customer.age


def customer_profile(config: ReportConfig | None = None) -> EntityProfile:
    """Return the customer report's :class:`EntityProfile`."""

    config = config or ReportConfig()
    age_groups: RuleTable = age_group_rules(
        floor=config.age_band_floor,
        ceiling=config.age_band_ceiling,
        width=config.age_band_width,
    )

    def build_record(
        customer: CustomerDimension, metrics: DerivedMetrics, segment: str
    ) -> CustomerReportRecord:
        aggregate = metrics.aggregate
        age = customer_age(customer, metrics.reference_date)
        return CustomerReportRecord(
            customer_key=customer.customer_key,
            customer_number=customer.customer_number,
            customer_name=customer.customer_name,
            age=age,
            age_group=age_groups.classify(age),
            customer_segment=segment,
            total_orders=aggregate.total_orders,
            total_sales=aggregate.total_sales,
            total_quantity=aggregate.total_quantity,
            total_products=aggregate.distinct_counterparts,
            last_order_date=aggregate.last_order_date,
            lifespan_months=metrics.lifespan_months,
            recency_months=metrics.recency_months,
            avg_order_value=metrics.avg_order_value,
            avg_monthly_spend=metrics.avg_monthly_value,
        )

    return EntityProfile(
        name="customer",
        entity_field="customer_key",
        dimension_key=lambda customer: customer.customer_key,
        classifier=customer_segment_rules(
            min_lifespan_months=config.vip_min_lifespan_months,
            min_total_sales=config.vip_min_total_sales,
        ),
        label_field="customer_segment",
        build_record=build_record,
        fields=CUSTOMER_REPORT_FIELDS,
    )


def build_customer_report(
    facts: Iterable[SalesFact | Mapping[str, Any]],
    customers: Iterable[CustomerDimension | Mapping[str, Any]],
    reference_date: date,
    config: ReportConfig | None = None,
) -> ReportResult[CustomerReportRecord]:
    """Build the customer performance report.

    Parameters
    ----------
    facts:
        Sales fact rows (records or raw mappings).
    customers:
        Customer dimension rows (records or raw mappings).
    reference_date:
        The report's "now"; recency and age are measured against it.
    config:
        Segment thresholds, age bands and execution options.

    Returns
    -------
    ReportResult[CustomerReportRecord]
        One record per customer with at least one dated, valid fact row,
        ordered by ``customer_key``. ``result.exclusions`` counts the fact
        rows that were left out.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> facts = [
    ...     SalesFact("SO1", date(2023, 1, 10), 1, 7, 1, Decimal("2500")),
    ...     SalesFact("SO2", date(2024, 6, 20), 1, 8, 2, Decimal("3500")),
    ... ]
    >>> customers = [CustomerDimension(1, "AW00011000", "Jon Yang")]
    >>> report = build_customer_report(facts, customers, date(2024, 7, 1))
    >>> row = report[0]
    >>> row.lifespan_months, row.recency_months, row.customer_segment
    (17, 0, 'VIP')
    """

    config = config or ReportConfig()
    pipeline = ReportPipeline(
        customer_profile(config),
        strict=config.strict,
        parallel=config.parallel,
        parallel_threshold=config.parallel_threshold,
        n_workers=config.n_workers,
    )
    return pipeline.run(facts, _customer_rows(customers), reference_date)


def _customer_rows(
    customers: Iterable[CustomerDimension | Mapping[str, Any]],
) -> list[CustomerDimension]:
    rows = list(customers)
    raw = [row for row in rows if not isinstance(row, CustomerDimension)]
    if not raw:
        return rows
    validated = iter(DimensionContract().validate_customers(raw))
    return [
        row if isinstance(row, CustomerDimension) else next(validated) for row in rows
    ]
