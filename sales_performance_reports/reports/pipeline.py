"""Generic aggregate → derive → classify → assemble report pipeline.

Customer and product reports run the same four stages and differ only in
the entity they group by, the rule table that labels each entity and the
shape of the published record. Those differences are captured by an
:class:`EntityProfile`; :class:`ReportPipeline` runs the stages.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass
from datetime import date, datetime
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    TypeVar,
    overload,
)

from sales_performance_reports.foundation.aggregation import (
    EntityField,
    ExclusionSummary,
    SalesAggregator,
)
from sales_performance_reports.foundation.contracts import (
    EntityKey,
    FactContract,
    SalesFact,
)
from sales_performance_reports.foundation.metrics import (
    DerivedMetrics,
    derive_metrics_batch,
)
from sales_performance_reports.foundation.segmentation import RuleTable

logger = logging.getLogger(__name__)

D = TypeVar("D")
R = TypeVar("R")


@dataclass(frozen=True)
class EntityProfile(Generic[D, R]):
    """What varies between the customer and the product report.

    Attributes
    ----------
    name:
        Report name used in log messages.
    entity_field:
        Fact attribute holding the entity key.
    dimension_key:
        Returns the key of a dimension row.
    classifier:
        Rule table assigning the report's segment/band label.
    label_field:
        Record field the classifier's label is published under.
    build_record:
        Assembles the published record from the dimension row, the derived
        metrics and the label.
    fields:
        Published field names, in contract order.
    """

    name: str
    entity_field: EntityField
    dimension_key: Callable[[D], EntityKey]
    classifier: RuleTable[DerivedMetrics]
    label_field: str
    build_record: Callable[[D, DerivedMetrics, str], R]
    fields: tuple[str, ...]


@dataclass(frozen=True)
class ReportResult(SequenceABC, Generic[R]):
    """Published report records plus what was left out.

    Behaves as a read-only sequence of records, ordered by entity key.
    ``rules`` documents the label cut points as ``"label: condition"`` lines.
    """

    records: tuple[R, ...]
    exclusions: ExclusionSummary
    reference_date: date
    fields: tuple[str, ...]
    label_field: str
    labels: tuple[str, ...]
    rules: tuple[str, ...] = ()

    @overload
    def __getitem__(self, index: int) -> R: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[R, ...]: ...

    def __getitem__(self, index):
        return self.records[index]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[R]:
        return iter(self.records)

    def as_dicts(self) -> list[dict[str, Any]]:
        return [record.as_dict() for record in self.records]


class ReportPipeline(Generic[D, R]):
    """Run the report stages for one :class:`EntityProfile`."""

    def __init__(
        self,
        profile: EntityProfile[D, R],
        *,
        strict: bool = False,
        parallel: bool = False,
        parallel_threshold: int = 100_000,
        n_workers: Optional[int] = None,
    ) -> None:
        self.profile = profile
        self.strict = strict
        self.parallel = parallel
        self.parallel_threshold = parallel_threshold
        self.n_workers = n_workers

    def run(
        self,
        facts: Iterable[SalesFact | Mapping[str, Any]],
        dimension: Iterable[D],
        reference_date: date,
    ) -> ReportResult[R]:
        """Build the report.

        Parameters
        ----------
        facts:
            Sales fact rows; raw mappings are validated on the fly.
        dimension:
            Dimension rows for the profile's entity.
        reference_date:
            The report's "now". Recency and age are measured against it.
        """

        reference_date = _as_date(reference_date)
        profile = self.profile

        rows_by_key: dict[EntityKey, D] = {}
        for row in dimension:
            key = profile.dimension_key(row)
            if key in rows_by_key:
                raise ValueError(
                    f"Duplicate {profile.entity_field} in {profile.name} dimension: {key!r}"
                )
            rows_by_key[key] = row

        aggregator = SalesAggregator(
            profile.entity_field, rows_by_key.keys(), strict=self.strict
        )
        aggregation = aggregator.aggregate(_iter_facts(facts))

        derived = derive_metrics_batch(
            aggregation.aggregates,
            reference_date,
            parallel=self.parallel,
            parallel_threshold=self.parallel_threshold,
            n_workers=self.n_workers,
        )

        records = tuple(
            profile.build_record(
                rows_by_key[metrics.entity_key],
                metrics,
                profile.classifier.classify(metrics),
            )
            for metrics in derived
        )

        logger.info(
            f"Built {profile.name} report: {len(records)} records, "
            f"{aggregation.exclusions.total_excluded} of "
            f"{aggregation.exclusions.total_rows} fact rows excluded"
        )
        return ReportResult(
            records=records,
            exclusions=aggregation.exclusions,
            reference_date=reference_date,
            fields=profile.fields,
            label_field=profile.label_field,
            labels=profile.classifier.labels,
            rules=tuple(profile.classifier.describe()),
        )


def _iter_facts(facts: Iterable[SalesFact | Mapping[str, Any]]) -> Iterator[SalesFact]:
    contract = FactContract()
    for idx, fact in enumerate(facts):
        if isinstance(fact, SalesFact):
            yield fact
        else:
            yield contract.parse_record(fact, idx)


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"reference_date must be a date, got {type(value).__name__}")
