"""Product performance report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sales_performance_reports.config import ReportConfig
from sales_performance_reports.foundation.contracts import (
    DimensionContract,
    EntityKey,
    ProductDimension,
    SalesFact,
)
from sales_performance_reports.foundation.errors import ConfigurationError
from sales_performance_reports.foundation.metrics import DerivedMetrics
from sales_performance_reports.foundation.segmentation import (
    RevenueBandThresholds,
    revenue_band_rules,
)
from sales_performance_reports.reports.pipeline import (
    EntityProfile,
    ReportPipeline,
    ReportResult,
)


@dataclass(frozen=True)
class ProductReportRecord:
    """One row of the product report. Field order is the published order."""

    product_key: EntityKey
    product_name: str
    category: str | None
    subcategory: str | None
    cost: Decimal | None
    revenue_band: str
    total_orders: int
    total_sales: Decimal
    total_quantity: int
    total_customers: int
    avg_selling_price: Decimal
    last_sale_date: date
    lifespan_months: int
    avg_order_revenue: Decimal
    avg_monthly_revenue: Decimal

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


PRODUCT_REPORT_FIELDS = tuple(item.name for item in fields(ProductReportRecord))


def _build_record(
    product: ProductDimension, metrics: DerivedMetrics, band: str
) -> ProductReportRecord:
    aggregate = metrics.aggregate
    return ProductReportRecord(
        product_key=product.product_key,
        product_name=product.product_name,
        category=product.category,
        subcategory=product.subcategory,
        cost=product.cost,
        revenue_band=band,
        total_orders=aggregate.total_orders,
        total_sales=aggregate.total_sales,
        total_quantity=aggregate.total_quantity,
        total_customers=aggregate.distinct_counterparts,
        avg_selling_price=metrics.avg_unit_price,
        last_sale_date=aggregate.last_order_date,
        lifespan_months=metrics.lifespan_months,
        avg_order_revenue=metrics.avg_order_value,
        avg_monthly_revenue=metrics.avg_monthly_value,
    )


def product_profile(thresholds: RevenueBandThresholds) -> EntityProfile:
    """Return the product report's :class:`EntityProfile`."""

    return EntityProfile(
        name="product",
        entity_field="product_key",
        dimension_key=lambda product: product.product_key,
        classifier=revenue_band_rules(thresholds),
        label_field="revenue_band",
        build_record=_build_record,
        fields=PRODUCT_REPORT_FIELDS,
    )


def coerce_thresholds(
    thresholds: RevenueBandThresholds | Mapping[str, Any] | tuple,
) -> RevenueBandThresholds:
    """Accept thresholds as a record, a mapping or a ``(mid, high)`` pair."""

    if isinstance(thresholds, RevenueBandThresholds):
        return thresholds
    if isinstance(thresholds, Mapping):
        try:
            return RevenueBandThresholds(
                thresholds["mid_threshold"], thresholds["high_threshold"]
            )
        except KeyError as exc:
            raise ConfigurationError(
                f"Revenue thresholds missing {exc.args[0]}"
            ) from exc
    if isinstance(thresholds, tuple) and len(thresholds) == 2:
        return RevenueBandThresholds(*thresholds)
    raise ConfigurationError(f"Unsupported revenue thresholds: {thresholds!r}")


def build_product_report(
    facts: Iterable[SalesFact | Mapping[str, Any]],
    products: Iterable[ProductDimension | Mapping[str, Any]],
    reference_date: date,
    thresholds: RevenueBandThresholds | Mapping[str, Any] | tuple,
    config: ReportConfig | None = None,
) -> ReportResult[ProductReportRecord]:
    """Build the product performance report.

    ``thresholds`` is validated before any fact row is read; unordered cut
    points raise :class:`ConfigurationError`. They take precedence over
    ``config.revenue_bands``.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> facts = [SalesFact("SO1", date(2024, 3, 1), 1, 7, 2, Decimal("5000"))]
    >>> products = [ProductDimension(7, "Road-150", "Bikes", "Road Bikes", Decimal("2171"))]
    >>> report = build_product_report(
    ...     facts, products, date(2024, 7, 1), RevenueBandThresholds(1000, 5000)
    ... )
    >>> report[0].revenue_band, report[0].avg_selling_price
    ('High', Decimal('2500.00'))
    """

    bands = coerce_thresholds(thresholds)
    config = config or ReportConfig()
    pipeline = ReportPipeline(
        product_profile(bands),
        strict=config.strict,
        parallel=config.parallel,
        parallel_threshold=config.parallel_threshold,
        n_workers=config.n_workers,
    )
    return pipeline.run(facts, _product_rows(products), reference_date)


def _product_rows(
    products: Iterable[ProductDimension | Mapping[str, Any]],
) -> list[ProductDimension]:
    rows = list(products)
    raw = [row for row in rows if not isinstance(row, ProductDimension)]
    if not raw:
        return rows
    validated = iter(DimensionContract().validate_products(raw))
    return [
        row if isinstance(row, ProductDimension) else next(validated) for row in rows
    ]
