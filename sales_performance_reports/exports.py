"""Export built reports to CSV and JSON.

Both formats keep the published field order. JSON keeps money amounts as
strings so no precision is lost; CSV goes through pandas.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from sales_performance_reports.pandas import report_to_dataframe
from sales_performance_reports.reports.pipeline import ReportResult

logger = logging.getLogger(__name__)


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def report_payload(
    result: ReportResult, metadata: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Return the JSON-serialisable document for ``result``."""

    return {
        "metadata": metadata or {},
        "reference_date": result.reference_date.isoformat(),
        "exclusions": result.exclusions.as_dict(),
        "fields": list(result.fields),
        "rules": {result.label_field: list(result.rules)},
        "records": [
            {name: _json_value(getattr(record, name)) for name in result.fields}
            for record in result
        ],
    }


def export_report_json(
    result: ReportResult,
    output_path: str | Path,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Export a report to JSON.

    Parameters
    ----------
    result:
        Built customer or product report
    output_path:
        Path where the JSON file will be saved
    metadata:
        Optional metadata to include (e.g. source snapshot id, thresholds)

    Examples
    --------
    >>> report = build_product_report(facts, products, date(2024, 7, 1), bands)
    >>> export_report_json(report, "product_report.json",
    ...                    metadata={"revenue_bands": bands.as_dict()})
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report_payload(result, metadata), f, indent=2)

    logger.info(f"Report with {len(result)} records exported to {output_path}")


def export_report_csv(result: ReportResult, output_path: str | Path) -> None:
    """Export a report to CSV, one row per entity.

    Examples
    --------
    >>> export_report_csv(customer_report, "customer_report.csv")
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = report_to_dataframe(result)
    df.to_csv(output_path, index=False)

    logger.info(f"Report with {len(result)} records exported to {output_path}")
