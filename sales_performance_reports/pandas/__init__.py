"""Pandas DataFrame adapters for the report builders."""

from .reports import (
    build_customer_report_df,
    build_product_report_df,
    dataframe_to_customers,
    dataframe_to_products,
    dataframe_to_sales_facts,
    report_to_dataframe,
)

__all__ = [
    # Input adapters
    "dataframe_to_sales_facts",
    "dataframe_to_customers",
    "dataframe_to_products",
    # Output adapters
    "report_to_dataframe",
    "build_customer_report_df",
    "build_product_report_df",
]
