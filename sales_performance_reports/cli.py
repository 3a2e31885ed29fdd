"""Command line entry points for the sales performance reports."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from sales_performance_reports.config import ReportConfig, load_config
from sales_performance_reports.exports import (
    export_report_csv,
    export_report_json,
    report_payload,
)
from sales_performance_reports.foundation.contracts import (
    DimensionContract,
    FactContract,
)
from sales_performance_reports.foundation.errors import ConfigurationError
from sales_performance_reports.foundation.segmentation import RevenueBandThresholds
from sales_performance_reports.reports.customer import build_customer_report
from sales_performance_reports.reports.pipeline import ReportResult
from sales_performance_reports.reports.product import build_product_report
from sales_performance_reports.reports.summary import summarize_report

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _load_rows(path: Path) -> list[dict[str, Any]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of rows in {resolved}")
    return payload


def _reference_date(value: str | None) -> date:
    # The only place the report reads the wall clock.
    if value is None:
        return date.today()
    return date.fromisoformat(value)


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except ArithmeticError as exc:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}") from exc


def _common_parser(description: str, dimension_help: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "facts", type=Path, help="Path to JSON file with sales fact rows"
    )
    parser.add_argument("dimension", type=Path, help=dimension_help)
    parser.add_argument(
        "--reference-date",
        type=str,
        help="Reference date for recency and age (ISO format: YYYY-MM-DD). Defaults to today.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional JSON file with report configuration.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Output path; .csv writes CSV, anything else JSON. Defaults to stdout JSON.",
    )
    return parser


def _write(result: ReportResult, output: Path | None, metadata: dict[str, Any]) -> None:
    if output is None:  # stdout fallback enables piping in shell usage.
        json.dump(report_payload(result, metadata), fp=sys.stdout, indent=2)
        print()
    elif output.suffix.lower() == ".csv":
        export_report_csv(result, output)
    else:
        export_report_json(result, output, metadata=metadata)


def _log_summary(result: ReportResult) -> None:
    summary = summarize_report(result)
    distribution = ", ".join(
        f"{label}={count}" for label, count in summary.label_distribution.items()
    )
    logger.info(
        f"{summary.entity_count} entities, total sales {summary.total_sales}, "
        f"{result.label_field}: {distribution}"
    )
    if summary.excluded_rows:
        logger.warning(
            f"{summary.excluded_rows} fact rows excluded: {result.exclusions.as_dict()}"
        )


def customer_report_cli(argv: list[str] | None = None) -> int:
    """Build the customer performance report from JSON inputs.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for an empty report, 2 for a bad configuration)
    """
    parser = _common_parser(
        "Build the customer performance report",
        "Path to JSON file with customer dimension rows",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else ReportConfig()
    except ConfigurationError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 2

    reference_date = _reference_date(args.reference_date)
    logger.info(f"Loading sales facts from {args.facts}")
    facts = FactContract().iter_records(_load_rows(args.facts))
    logger.info(f"Loading customers from {args.dimension}")
    customers = DimensionContract().validate_customers(_load_rows(args.dimension))

    result = build_customer_report(facts, customers, reference_date, config=config)
    if not result:
        logger.error("No customer has a qualifying sales fact row")
        return 1

    _log_summary(result)
    _write(
        result,
        args.output,
        metadata={"report": "customer", "config": config.as_dict()},
    )
    return 0


def product_report_cli(argv: list[str] | None = None) -> int:
    """Build the product performance report from JSON inputs.

    Revenue band cut points come from ``--mid-threshold``/``--high-threshold``
    when given, otherwise from the configuration.
    """
    parser = _common_parser(
        "Build the product performance report",
        "Path to JSON file with product dimension rows",
    )
    parser.add_argument(
        "--mid-threshold",
        type=_decimal_arg,
        help="Lowest total sales counted as Mid revenue (default: 10000)",
    )
    parser.add_argument(
        "--high-threshold",
        type=_decimal_arg,
        help="Lowest total sales counted as High revenue (default: 50000)",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else ReportConfig()
        thresholds = RevenueBandThresholds(
            mid_threshold=(
                args.mid_threshold
                if args.mid_threshold is not None
                else config.revenue_bands.mid_threshold
            ),
            high_threshold=(
                args.high_threshold
                if args.high_threshold is not None
                else config.revenue_bands.high_threshold
            ),
        )
    except ConfigurationError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 2

    reference_date = _reference_date(args.reference_date)
    logger.info(f"Loading sales facts from {args.facts}")
    facts = FactContract().iter_records(_load_rows(args.facts))
    logger.info(f"Loading products from {args.dimension}")
    products = DimensionContract().validate_products(_load_rows(args.dimension))

    result = build_product_report(
        facts, products, reference_date, thresholds, config=config
    )
    if not result:
        logger.error("No product has a qualifying sales fact row")
        return 1

    _log_summary(result)
    _write(
        result,
        args.output,
        metadata={"report": "product", "revenue_bands": thresholds.as_dict()},
    )
    return 0


def customer_main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    raise SystemExit(customer_report_cli())


def product_main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    raise SystemExit(product_report_cli())


if __name__ == "__main__":  # pragma: no cover
    customer_main()
