"""Tests for the pandas report adapters."""

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from sales_performance_reports import RevenueBandThresholds, build_customer_report
from sales_performance_reports.pandas import (
    build_customer_report_df,
    build_product_report_df,
    dataframe_to_customers,
    dataframe_to_products,
    dataframe_to_sales_facts,
    report_to_dataframe,
)
from sales_performance_reports.reports.customer import CUSTOMER_REPORT_FIELDS
from sales_performance_reports.reports.product import PRODUCT_REPORT_FIELDS


@pytest.fixture
def facts_df():
    return pd.DataFrame(
        {
            "order_number": ["SO1", "SO1", "SO2", "SO3", "SO6"],
            "order_date": pd.to_datetime(
                ["2023-01-10", "2023-01-10", "2024-06-20", "2024-06-01", None]
            ),
            "customer_key": [1, 1, 1, 2, 4],
            "product_key": [10, 20, 10, 20, 40],
            "quantity": [1, 2, 1, 1, 3],
            "sales_amount": [2500.0, 60.0, 3440.0, 500.0, 90.0],
        }
    )


@pytest.fixture
def customers_df():
    return pd.DataFrame(
        {
            "customer_key": [1, 2, 4],
            "customer_number": ["AW1", "AW2", "AW4"],
            "first_name": ["Ana", "Ben", "Dee"],
            "last_name": ["Long", "Short", "Never"],
            "birth_date": pd.to_datetime(["1985-03-14", None, None]),
            "age": [None, 15, None],
        }
    )


@pytest.fixture
def products_df():
    return pd.DataFrame(
        {
            "product_key": [10, 20, 40],
            "product_name": ["Road-150", "Sport-100 Helmet", "Touring Tire"],
            "category": ["Bikes", "Accessories", "Accessories"],
            "subcategory": ["Road Bikes", "Helmets", None],
            "cost": [2171.29, 13.09, None],
        }
    )


class TestDataFrameToSalesFacts:
    def test_converts_rows(self, facts_df):
        """Rows become SalesFact records in DataFrame order."""
        facts = dataframe_to_sales_facts(facts_df)

        assert len(facts) == 5
        assert facts[0].order_date == date(2023, 1, 10)
        assert facts[0].sales_amount == Decimal("2500.0")
        assert facts[2].customer_key == 1
        assert isinstance(facts[2].quantity, int)

    def test_missing_order_date_becomes_none(self, facts_df):
        """NaT order dates are kept as undated rows."""
        assert dataframe_to_sales_facts(facts_df)[4].order_date is None

    def test_custom_column_names(self, facts_df):
        """Column mappings allow non-standard schemas."""
        renamed = facts_df.rename(columns={"order_number": "order_id", "sales_amount": "revenue"})

        facts = dataframe_to_sales_facts(
            renamed, order_number_col="order_id", sales_amount_col="revenue"
        )

        assert facts[1].order_number == "SO1"
        assert facts[1].sales_amount == Decimal("60.0")

    def test_missing_columns_raise(self, facts_df):
        """Missing required columns are reported by name."""
        with pytest.raises(ValueError, match="missing required columns"):
            dataframe_to_sales_facts(facts_df.drop(columns=["quantity"]))

    def test_null_keys_raise(self, facts_df):
        """Only order_date may be null."""
        facts_df.loc[0, "sales_amount"] = None

        with pytest.raises(ValueError, match="sales_amount"):
            dataframe_to_sales_facts(facts_df)

    def test_empty_dataframe(self, facts_df):
        """Empty DataFrame converts to an empty list."""
        assert dataframe_to_sales_facts(facts_df.iloc[0:0]) == []


class TestDimensionAdapters:
    def test_customers(self, customers_df):
        """Names are joined and missing ages become None."""
        customers = dataframe_to_customers(customers_df)

        assert customers[0].customer_name == "Ana Long"
        assert customers[0].birth_date == date(1985, 3, 14)
        assert customers[0].age is None
        assert customers[1].birth_date is None
        assert customers[1].age == 15

    def test_products(self, products_df):
        """Missing cost and subcategory become None."""
        products = dataframe_to_products(products_df)

        assert products[0].cost == Decimal("2171.29")
        assert products[2].cost is None
        assert products[2].subcategory is None

    def test_products_missing_columns(self, products_df):
        with pytest.raises(ValueError, match="product_name"):
            dataframe_to_products(products_df.drop(columns=["product_name"]))


class TestReportToDataFrame:
    def test_columns_follow_field_order(self, facts, customers, reference_date):
        """Columns match the published field order; Decimals become floats."""
        df = report_to_dataframe(build_customer_report(facts, customers, reference_date))

        assert list(df.columns) == list(CUSTOMER_REPORT_FIELDS)
        assert len(df) == 3
        assert df.iloc[0]["total_sales"] == 6000.0
        assert df.iloc[0]["customer_segment"] == "VIP"
        assert pd.api.types.is_datetime64_any_dtype(df["last_order_date"])

    def test_empty_report(self, customers, reference_date):
        """Empty report returns an empty DataFrame with the published columns."""
        df = report_to_dataframe(build_customer_report([], customers, reference_date))

        assert df.empty
        assert list(df.columns) == list(CUSTOMER_REPORT_FIELDS)


class TestConvenienceBuilders:
    def test_customer_report_df(self, facts_df, customers_df, reference_date):
        df = build_customer_report_df(facts_df, customers_df, reference_date)

        assert df["customer_key"].tolist() == [1, 2]
        assert df["customer_segment"].tolist() == ["VIP", "New"]
        assert df["age_group"].tolist() == ["30-39", "Under 20"]

    def test_product_report_df(self, facts_df, products_df, reference_date):
        df = build_product_report_df(
            facts_df,
            products_df,
            reference_date,
            RevenueBandThresholds(Decimal("1000"), Decimal("5000")),
        )

        assert list(df.columns) == list(PRODUCT_REPORT_FIELDS)
        assert df["product_key"].tolist() == [10, 20]
        assert df["revenue_band"].tolist() == ["High", "Low"]
        assert df["total_customers"].tolist() == [1, 2]
