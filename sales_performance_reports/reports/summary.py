"""Report overview: entity counts, totals and label distribution."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sales_performance_reports.reports.pipeline import ReportResult

# Standard percentage precision: 2 decimal places (e.g., 45.67%)
PERCENTAGE_PRECISION = Decimal("0.01")


@dataclass(frozen=True)
class ReportSummary:
    """Headline numbers for a built report.

    Attributes
    ----------
    entity_count:
        Number of report rows.
    total_sales:
        Sum of ``total_sales`` over all rows.
    total_orders:
        Sum of ``total_orders`` over all rows. An order spanning several
        products counts once per product on the product report.
    label_distribution:
        Rows per segment/band label, in rule order, including labels no row
        received.
    label_revenue_share:
        Percentage of ``total_sales`` per label.
    excluded_rows:
        Fact rows excluded from the build.
    """

    entity_count: int
    total_sales: Decimal
    total_orders: int
    label_distribution: dict[str, int]
    label_revenue_share: dict[str, Decimal]
    excluded_rows: int

    def __post_init__(self) -> None:
        if sum(self.label_distribution.values()) != self.entity_count:
            raise ValueError(
                f"Label distribution ({self.label_distribution}) does not cover "
                f"{self.entity_count} entities"
            )


def summarize_report(result: ReportResult) -> ReportSummary:
    """Summarise ``result`` by its segment or revenue band label.

    Examples
    --------
    >>> summary = summarize_report(customer_report)  # doctest: +SKIP
    >>> summary.label_distribution  # doctest: +SKIP
    {'VIP': 1, 'Regular': 0, 'New': 3}
    """

    distribution = {label: 0 for label in result.labels}
    revenue = {label: Decimal("0") for label in result.labels}
    total_sales = Decimal("0")
    total_orders = 0
    for record in result:
        label = getattr(record, result.label_field)
        if label not in distribution:
            raise ValueError(f"Label {label!r} is not one of {result.labels}")
        distribution[label] += 1
        revenue[label] += record.total_sales
        total_sales += record.total_sales
        total_orders += record.total_orders

    if total_sales == 0:
        share = {label: Decimal("0") for label in result.labels}
    else:
        share = {
            label: (amount / total_sales * 100).quantize(
                PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP
            )
            for label, amount in revenue.items()
        }

    return ReportSummary(
        entity_count=len(result),
        total_sales=total_sales.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        total_orders=total_orders,
        label_distribution=distribution,
        label_revenue_share=share,
        excluded_rows=result.exclusions.total_excluded,
    )
