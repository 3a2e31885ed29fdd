"""Shared fixtures: a small sales star schema."""

from datetime import date
from decimal import Decimal

import pytest

from sales_performance_reports.foundation.contracts import (
    CustomerDimension,
    ProductDimension,
    SalesFact,
)

REFERENCE_DATE = date(2024, 7, 1)


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


@pytest.fixture
def customers():
    return [
        CustomerDimension(1, "AW00000001", "Ana Long", birth_date=date(1985, 3, 14)),
        CustomerDimension(2, "AW00000002", "Ben Short", birth_date=date(2008, 9, 1)),
        CustomerDimension(3, "AW00000003", "Cam Mid", age=47),
        CustomerDimension(4, "AW00000004", "Dee Never"),
    ]


@pytest.fixture
def products():
    return [
        ProductDimension(10, "Road-150", "Bikes", "Road Bikes", Decimal("2171.29")),
        ProductDimension(20, "Sport-100 Helmet", "Accessories", "Helmets", Decimal("13.09")),
        ProductDimension(30, "Water Bottle", "Accessories", "Bottles", Decimal("1.87")),
        ProductDimension(40, "Touring Tire", "Accessories", "Tires", None),
    ]


@pytest.fixture
def facts():
    """Fact rows covering long-lived, single-order and undated activity.

    Customer 1: orders 2023-01-10 .. 2024-06-20, 6000 total (VIP)
    Customer 2: one order on 2024-06-01 for 500 (New)
    Customer 3: orders 2022-05-05 .. 2023-08-15, 1200 total (Regular)
    Customer 4: only an undated row (absent from the report)
    """
    return [
        SalesFact("SO1", date(2023, 1, 10), 1, 10, 1, Decimal("2500.00")),
        SalesFact("SO1", date(2023, 1, 10), 1, 20, 2, Decimal("60.00")),
        SalesFact("SO2", date(2024, 6, 20), 1, 10, 1, Decimal("3440.00")),
        SalesFact("SO3", date(2024, 6, 1), 2, 20, 1, Decimal("500.00")),
        SalesFact("SO4", date(2022, 5, 5), 3, 20, 10, Decimal("700.00")),
        SalesFact("SO5", date(2023, 8, 15), 3, 30, 100, Decimal("500.00")),
        SalesFact("SO6", None, 4, 40, 3, Decimal("90.00")),
    ]
