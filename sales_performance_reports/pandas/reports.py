"""Pandas DataFrame adapters for report inputs and outputs."""

from datetime import date
from decimal import Decimal
from typing import Any, List, Mapping

import pandas as pd  # type: ignore

from sales_performance_reports.config import ReportConfig
from sales_performance_reports.foundation.contracts import (
    CustomerDimension,
    DimensionContract,
    FactContract,
    ProductDimension,
    SalesFact,
)
from sales_performance_reports.foundation.segmentation import RevenueBandThresholds
from sales_performance_reports.reports.customer import build_customer_report
from sales_performance_reports.reports.pipeline import ReportResult
from sales_performance_reports.reports.product import build_product_report
from ._utils import decimal_to_float, require_columns, to_python_scalar


def _records(df: pd.DataFrame) -> List[dict]:
    return [
        {key: to_python_scalar(value) for key, value in record.items()}
        for record in df.to_dict("records")
    ]


def dataframe_to_sales_facts(
    facts_df: pd.DataFrame,
    order_number_col: str = "order_number",
    order_date_col: str = "order_date",
    customer_key_col: str = "customer_key",
    product_key_col: str = "product_key",
    quantity_col: str = "quantity",
    sales_amount_col: str = "sales_amount",
) -> List[SalesFact]:
    """Convert a fact table DataFrame to SalesFact records.

    Args:
        facts_df: DataFrame with one row per order line
        *_col: Column name mappings for flexibility

    Returns:
        List of SalesFact records in DataFrame order. Null ``order_date``
        values (NaT/None) become ``None`` so the rows are excluded later.

    Raises:
        ValueError: If DataFrame missing required columns or has nulls in
            any column other than order_date

    Example:
        >>> facts_df = pd.read_parquet('fact_sales.parquet')
        >>> facts = dataframe_to_sales_facts(facts_df, order_number_col='order_id')
    """
    mapping = {
        "order_number": order_number_col,
        "order_date": order_date_col,
        "customer_key": customer_key_col,
        "product_key": product_key_col,
        "quantity": quantity_col,
        "sales_amount": sales_amount_col,
    }
    require_columns(facts_df, list(mapping.values()), "Sales facts")

    if facts_df.empty:
        return []

    non_null_cols = [col for name, col in mapping.items() if name != "order_date"]
    null_cols = facts_df[non_null_cols].isnull().any()
    if null_cols.any():
        null_col_names = null_cols[null_cols].index.tolist()
        raise ValueError(
            f"Null/NaN values found in columns: {null_col_names}. "
            "Only order_date may be missing."
        )

    renamed = facts_df[list(mapping.values())].rename(
        columns={col: name for name, col in mapping.items()}
    )
    return FactContract().validate_records(_records(renamed))


def dataframe_to_customers(customers_df: pd.DataFrame) -> List[CustomerDimension]:
    """Convert a customer dimension DataFrame to CustomerDimension records.

    Requires ``customer_key`` and ``customer_number``; ``customer_name`` (or
    ``first_name``/``last_name``), ``birth_date`` and ``age`` are optional.
    """
    require_columns(customers_df, ["customer_key", "customer_number"], "Customers")
    if customers_df.empty:
        return []
    return DimensionContract().validate_customers(_records(customers_df))


def dataframe_to_products(products_df: pd.DataFrame) -> List[ProductDimension]:
    """Convert a product dimension DataFrame to ProductDimension records."""
    require_columns(products_df, ["product_key", "product_name"], "Products")
    if products_df.empty:
        return []
    return DimensionContract().validate_products(_records(products_df))


def report_to_dataframe(result: ReportResult) -> pd.DataFrame:
    """Convert a built report to a DataFrame.

    Columns follow the published field order. Decimal amounts become floats
    and dates become ``datetime64``.

    Example:
        >>> report = build_customer_report(facts, customers, date(2024, 7, 1))
        >>> df = report_to_dataframe(report)
        >>> df[df['customer_segment'] == 'VIP'].head()
    """
    columns = list(result.fields)
    if len(result) == 0:
        return pd.DataFrame(columns=columns)

    rows = []
    for record in result:
        row: dict[str, Any] = {}
        for name in columns:
            value = getattr(record, name)
            if isinstance(value, Decimal):
                value = decimal_to_float(value)
            row[name] = value
        rows.append(row)

    df = pd.DataFrame(rows, columns=columns)
    for name in ("last_order_date", "last_sale_date"):
        if name in df.columns:
            df[name] = pd.to_datetime(df[name])
    return df


def build_customer_report_df(
    facts_df: pd.DataFrame,
    customers_df: pd.DataFrame,
    reference_date: date,
    config: ReportConfig | None = None,
) -> pd.DataFrame:
    """Build the customer report from DataFrames and return it as a DataFrame.

    Convenience function that combines conversion and report building.
    """
    result = build_customer_report(
        dataframe_to_sales_facts(facts_df),
        dataframe_to_customers(customers_df),
        reference_date,
        config=config,
    )
    return report_to_dataframe(result)


def build_product_report_df(
    facts_df: pd.DataFrame,
    products_df: pd.DataFrame,
    reference_date: date,
    thresholds: RevenueBandThresholds | Mapping[str, Any] | tuple,
    config: ReportConfig | None = None,
) -> pd.DataFrame:
    """Build the product report from DataFrames and return it as a DataFrame.

    Example:
        >>> df = build_product_report_df(
        ...     facts_df, products_df, date(2024, 7, 1),
        ...     RevenueBandThresholds(10_000, 50_000),
        ... )
    """
    result = build_product_report(
        dataframe_to_sales_facts(facts_df),
        dataframe_to_products(products_df),
        reference_date,
        thresholds,
        config=config,
    )
    return report_to_dataframe(result)
