"""Derived per-entity metrics: lifespan, recency and guarded ratios.

Every ratio KPI uses :func:`guarded_ratio`: when the denominator is zero the
KPI equals the numerator. For a customer whose first and last order fall in
the same month, ``avg_monthly_spend`` is therefore the customer's total
sales, not an error and not a null.

The reference date ("now") is always passed in by the caller so a rebuild
over the same snapshot and date is reproducible.
"""

from __future__ import annotations

import multiprocessing
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from sales_performance_reports.foundation.aggregation import (
    MONEY_PRECISION,
    EntityAggregate,
)
from sales_performance_reports.foundation.calendar import (
    calendar_months_between,
    elapsed_months_between,
)


def guarded_ratio(numerator: Decimal, denominator: int | Decimal) -> Decimal:
    """Divide, returning ``numerator`` when ``denominator`` is zero.

    The result is rounded to cents.

    >>> guarded_ratio(Decimal("500.00"), 0)
    Decimal('500.00')
    >>> guarded_ratio(Decimal("100"), 3)
    Decimal('33.33')
    """

    if denominator == 0:
        result = numerator
    else:
        result = numerator / Decimal(denominator)
    return result.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DerivedMetrics:
    """Aggregate totals plus month spans and ratio KPIs for one entity.

    Attributes
    ----------
    aggregate:
        The raw totals these metrics were derived from.
    reference_date:
        Date recency was measured against.
    lifespan_months:
        Calendar months between first and last order.
    recency_months:
        Completed months between last order and ``reference_date``.
    avg_order_value:
        ``total_sales / total_orders``. Reported as ``avg_order_revenue``
        on product reports.
    avg_monthly_value:
        ``total_sales / lifespan_months``. Reported as
        ``avg_monthly_spend`` (customers) or ``avg_monthly_revenue``
        (products).
    avg_unit_price:
        ``total_sales / total_quantity``. Reported as
        ``avg_selling_price`` on product reports.
    """

    aggregate: EntityAggregate
    reference_date: date
    lifespan_months: int
    recency_months: int
    avg_order_value: Decimal
    avg_monthly_value: Decimal
    avg_unit_price: Decimal

    def __post_init__(self) -> None:
        if self.lifespan_months < 0:
            raise ValueError(
                f"Lifespan cannot be negative: {self.lifespan_months} "
                f"(entity_key={self.aggregate.entity_key})"
            )
        if self.recency_months < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.recency_months} "
                f"(entity_key={self.aggregate.entity_key})"
            )

    @property
    def entity_key(self):
        return self.aggregate.entity_key

    @property
    def total_sales(self) -> Decimal:
        return self.aggregate.total_sales


def derive_metrics(aggregate: EntityAggregate, reference_date: date) -> DerivedMetrics:
    """Derive month spans and ratio KPIs for one aggregate.

    A last order after ``reference_date`` yields ``recency_months == 0``.

    Examples
    --------
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> aggregate = EntityAggregate(
    ...     "C", 3, Decimal("6000.00"), 9, date(2023, 1, 10), date(2024, 6, 20), 2
    ... )
    >>> metrics = derive_metrics(aggregate, date(2024, 7, 1))
    >>> metrics.lifespan_months, metrics.recency_months
    (17, 0)
    >>> metrics.avg_order_value
    Decimal('2000.00')
    """

    lifespan_months = calendar_months_between(
        aggregate.first_order_date, aggregate.last_order_date
    )
    recency_months = elapsed_months_between(aggregate.last_order_date, reference_date)
    return DerivedMetrics(
        aggregate=aggregate,
        reference_date=reference_date,
        lifespan_months=lifespan_months,
        recency_months=recency_months,
        avg_order_value=guarded_ratio(aggregate.total_sales, aggregate.total_orders),
        avg_monthly_value=guarded_ratio(aggregate.total_sales, lifespan_months),
        avg_unit_price=guarded_ratio(aggregate.total_sales, aggregate.total_quantity),
    )


def _derive_chunk(
    aggregates: Sequence[EntityAggregate], reference_date: date
) -> list[DerivedMetrics]:
    """Worker entry point; must stay importable at module level for pickling."""

    return [derive_metrics(aggregate, reference_date) for aggregate in aggregates]


def derive_metrics_batch(
    aggregates: Sequence[EntityAggregate],
    reference_date: date,
    parallel: bool = False,
    parallel_threshold: int = 100_000,
    n_workers: Optional[int] = None,
) -> list[DerivedMetrics]:
    """Derive metrics for many aggregates, preserving input order.

    Each entity is independent of every other, so for large inputs the work
    is split into contiguous chunks and handed to a process pool.

    Parameters
    ----------
    aggregates:
        Aggregates to derive metrics for.
    reference_date:
        Date recency is measured against.
    parallel:
        Allow multiprocessing when there are at least ``parallel_threshold``
        aggregates.
    parallel_threshold:
        Minimum number of aggregates before a pool is used.
    n_workers:
        Pool size; defaults to the CPU count.
    """

    if not aggregates:
        return []

    if not (parallel and len(aggregates) >= parallel_threshold):
        return _derive_chunk(aggregates, reference_date)

    if n_workers is None:
        workers = os.cpu_count() or 1
    else:
        workers = max(1, n_workers)
    chunk_size = max(1, -(-len(aggregates) // workers))
    chunks = [
        (list(aggregates[i : i + chunk_size]), reference_date)
        for i in range(0, len(aggregates), chunk_size)
    ]
    with multiprocessing.Pool(processes=workers) as pool:
        chunk_results = pool.starmap(_derive_chunk, chunks)

    derived: list[DerivedMetrics] = []
    for chunk_result in chunk_results:
        derived.extend(chunk_result)
    return derived
