"""Tests for fact and dimension contracts."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from sales_performance_reports.foundation.contracts import (
    CustomerDimension,
    DimensionContract,
    FactContract,
    ProductDimension,
    SalesFact,
    coerce_date,
)


class TestCoerceDate:
    def test_datetime_becomes_date(self):
        assert coerce_date(datetime(2024, 1, 5, 13, 30)) == date(2024, 1, 5)

    def test_iso_string(self):
        assert coerce_date("2024-01-05") == date(2024, 1, 5)
        assert coerce_date("2024-01-05T10:00:00Z") == date(2024, 1, 5)

    @pytest.mark.parametrize("value", [None, "", "   ", float("nan")])
    def test_blank_values_are_missing(self, value):
        assert coerce_date(value) is None

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError, match="Cannot interpret"):
            coerce_date(20240105)


class TestFactContract:
    """Test sales fact validation."""

    def test_valid_row(self):
        facts = FactContract().validate_records(
            [
                {
                    "order_number": "SO43697",
                    "order_date": "2010-12-29",
                    "customer_key": 10769,
                    "product_key": 20,
                    "quantity": 1,
                    "sales_amount": "3578.27",
                }
            ]
        )
        assert facts == [
            SalesFact(
                order_number="SO43697",
                order_date=date(2010, 12, 29),
                customer_key=10769,
                product_key=20,
                quantity=1,
                sales_amount=Decimal("3578.27"),
            )
        ]

    def test_float_amount_has_no_binary_artefacts(self):
        (fact,) = FactContract().validate_records(
            [
                {
                    "order_number": "SO1",
                    "order_date": None,
                    "customer_key": "C1",
                    "product_key": "P1",
                    "quantity": 2,
                    "sales_amount": 0.1,
                }
            ]
        )
        assert fact.sales_amount == Decimal("0.1")
        assert fact.order_date is None

    def test_missing_required_field_raises(self):
        with pytest.raises(ValueError, match="missing required fields"):
            FactContract().validate_records(
                [{"order_number": "SO1", "customer_key": 1, "quantity": 1}]
            )

    def test_malformed_value_raises(self):
        with pytest.raises(ValueError, match="index 0 is malformed"):
            FactContract().validate_records(
                [
                    {
                        "order_number": "SO1",
                        "order_date": "not-a-date",
                        "customer_key": 1,
                        "product_key": 2,
                    }
                ]
            )

    def test_negative_values_pass_structural_validation(self):
        """Negative amounts are excluded later by the aggregator, not here."""
        (fact,) = FactContract().validate_records(
            [
                {
                    "order_number": "SO1",
                    "order_date": "2024-01-01",
                    "customer_key": 1,
                    "product_key": 2,
                    "quantity": -1,
                    "sales_amount": -5,
                }
            ]
        )
        assert fact.quantity == -1

    def test_iter_records_is_lazy(self):
        rows = iter([{"order_number": "SO1", "customer_key": 1, "product_key": 2}])
        facts = FactContract().iter_records(rows)
        assert next(facts).order_number == "SO1"


class TestDimensionContract:
    """Test customer and product dimension validation."""

    def test_customer_name_from_split_columns(self):
        (customer,) = DimensionContract().validate_customers(
            [
                {
                    "customer_key": 1,
                    "customer_number": "AW00011000",
                    "first_name": "Jon",
                    "last_name": "Yang",
                    "birth_date": "1971-10-06",
                }
            ]
        )
        assert customer == CustomerDimension(
            customer_key=1,
            customer_number="AW00011000",
            customer_name="Jon Yang",
            birth_date=date(1971, 10, 6),
        )

    def test_duplicate_customer_key_raises(self):
        rows = [
            {"customer_key": 1, "customer_number": "A"},
            {"customer_key": 1, "customer_number": "B"},
        ]
        with pytest.raises(ValueError, match="Duplicate customer_key"):
            DimensionContract().validate_customers(rows)

    def test_product_optional_fields(self):
        (product,) = DimensionContract().validate_products(
            [{"product_key": 7, "product_name": "Road-150 Red, 62", "cost": "2171.29"}]
        )
        assert product == ProductDimension(
            product_key=7,
            product_name="Road-150 Red, 62",
            category=None,
            subcategory=None,
            cost=Decimal("2171.29"),
        )

    def test_product_missing_name_raises(self):
        with pytest.raises(ValueError, match="missing required fields"):
            DimensionContract().validate_products([{"product_key": 7}])
