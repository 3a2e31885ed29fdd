"""Record contracts for the sales fact table and its dimensions.

The report engine consumes three already-conformed inputs: a sales fact
table with one row per order line and two dimensions (customers and
products) that fact rows reference by key. This module defines the
canonical records and the validators that turn raw mappings (JSON rows,
DataFrame records, database rows) into them.

Validators only enforce *structure*: required fields are present and have
a usable type. Business-level problems such as a negative quantity or a
key missing from a dimension are left for the aggregator, which excludes
those rows and reports them instead of failing the build.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Iterator, Mapping, Union

EntityKey = Union[int, str]


@dataclass(frozen=True, slots=True)
class SalesFact:
    """One sales order line.

    Attributes
    ----------
    order_number:
        Order identifier. Not unique on its own; an order may span lines.
    order_date:
        Date the order was placed. ``None`` means the order has not
        occurred yet and the row is excluded from every calculation.
    customer_key:
        Reference into the customer dimension.
    product_key:
        Reference into the product dimension.
    quantity:
        Units sold on this line.
    sales_amount:
        Line revenue in the reporting currency.
    """

    order_number: str
    order_date: date | None
    customer_key: EntityKey
    product_key: EntityKey
    quantity: int
    sales_amount: Decimal


@dataclass(frozen=True, slots=True)
class CustomerDimension:
    """Customer identity attributes.

    ``age`` is only used when ``birth_date`` is unknown; otherwise the age is
    derived from the birth date and the report's reference date.
    """

    customer_key: EntityKey
    customer_number: str
    customer_name: str
    birth_date: date | None = None
    age: int | None = None


@dataclass(frozen=True, slots=True)
class ProductDimension:
    """Product identity attributes."""

    product_key: EntityKey
    product_name: str
    category: str | None
    subcategory: str | None
    cost: Decimal | None


def coerce_date(value: Any) -> date | None:
    """Return ``value`` as a :class:`date`, treating blanks as missing.

    Accepts ``date``/``datetime`` objects, ISO-8601 strings and anything
    exposing ``to_pydatetime`` (pandas timestamps). ``None``, empty strings
    and NaN/NaT values map to ``None``.
    """

    if value is None or value != value:  # NaN / NaT
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date()
    raise TypeError(f"Cannot interpret {value!r} as a date")


def coerce_decimal(value: Any) -> Decimal:
    """Return ``value`` as a :class:`Decimal` without float artefacts."""

    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Cannot interpret {value!r} as a decimal amount")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Cannot interpret {value!r} as a decimal amount") from exc


def _coerce_key(value: Any) -> EntityKey:
    if isinstance(value, bool):
        raise TypeError(f"Invalid entity key: {value!r}")
    if isinstance(value, float) and value.is_integer():
        # pandas upcasts integer key columns to float when nulls are present
        return int(value)
    if isinstance(value, (int, str)):
        return value
    raise TypeError(f"Invalid entity key: {value!r}")


def _missing(data: Mapping[str, Any], fields: Iterable[str]) -> list[str]:
    return [
        name
        for name in fields
        if name not in data or data[name] is None or data[name] == ""
    ]


class FactContract:
    """Validate raw sales fact rows and return canonical records."""

    #: Fields that must be populated on every fact row.
    REQUIRED_FIELDS = ("order_number", "customer_key", "product_key")

    def iter_records(self, records: Iterable[Mapping[str, Any]]) -> Iterator[SalesFact]:
        """Lazily validate ``records``, yielding one :class:`SalesFact` each.

        Raises
        ------
        ValueError
            If a row misses a required field or holds an unparseable value.
        TypeError
            If a value has an unusable type.
        """

        for idx, record in enumerate(records):
            yield self.parse_record(record, idx)

    def parse_record(self, record: Mapping[str, Any], idx: int = 0) -> SalesFact:
        """Validate a single raw fact row."""

        missing = _missing(record, self.REQUIRED_FIELDS)
        if missing:
            raise ValueError(
                "Fact row missing required fields",
                {"missing_fields": missing, "record_index": idx},
            )
        try:
            quantity_raw = record.get("quantity", 0)
            quantity = 0 if quantity_raw is None else int(quantity_raw)
            amount_raw = record.get("sales_amount", 0)
            sales_amount = coerce_decimal(0 if amount_raw is None else amount_raw)
            return SalesFact(
                order_number=str(record["order_number"]),
                order_date=coerce_date(record.get("order_date")),
                customer_key=_coerce_key(record["customer_key"]),
                product_key=_coerce_key(record["product_key"]),
                quantity=quantity,
                sales_amount=sales_amount,
            )
        except (TypeError, ValueError) as exc:
            raise type(exc)(
                f"Fact row at index {idx} is malformed: {exc}",
                {"record_index": idx},
            ) from exc

    def validate_records(self, records: Iterable[Mapping[str, Any]]) -> list[SalesFact]:
        """Validate every row eagerly."""

        return list(self.iter_records(records))


class DimensionContract:
    """Validate customer and product dimension rows.

    Dimension keys must be unique; a duplicate key raises ``ValueError``
    because a report row could no longer be attributed to one entity.
    """

    CUSTOMER_FIELDS = ("customer_key", "customer_number")
    PRODUCT_FIELDS = ("product_key", "product_name")

    def validate_customers(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[CustomerDimension]:
        customers: list[CustomerDimension] = []
        seen: set[EntityKey] = set()
        for idx, record in enumerate(records):
            missing = _missing(record, self.CUSTOMER_FIELDS)
            if missing:
                raise ValueError(
                    "Customer row missing required fields",
                    {"missing_fields": missing, "record_index": idx},
                )
            key = _coerce_key(record["customer_key"])
            if key in seen:
                raise ValueError(
                    "Duplicate customer_key in customer dimension",
                    {"customer_key": key, "record_index": idx},
                )
            seen.add(key)

            name = record.get("customer_name")
            if not name:
                # Split-name extracts carry first/last name columns instead
                parts = [record.get("first_name"), record.get("last_name")]
                name = " ".join(str(part).strip() for part in parts if part)

            age = record.get("age")
            if age is not None and age == age:
                age = int(age)
            else:
                age = None

            customers.append(
                CustomerDimension(
                    customer_key=key,
                    customer_number=str(record["customer_number"]),
                    customer_name=str(name or ""),
                    birth_date=coerce_date(record.get("birth_date")),
                    age=age,
                )
            )
        return customers

    def validate_products(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[ProductDimension]:
        products: list[ProductDimension] = []
        seen: set[EntityKey] = set()
        for idx, record in enumerate(records):
            missing = _missing(record, self.PRODUCT_FIELDS)
            if missing:
                raise ValueError(
                    "Product row missing required fields",
                    {"missing_fields": missing, "record_index": idx},
                )
            key = _coerce_key(record["product_key"])
            if key in seen:
                raise ValueError(
                    "Duplicate product_key in product dimension",
                    {"product_key": key, "record_index": idx},
                )
            seen.add(key)

            cost = record.get("cost")
            products.append(
                ProductDimension(
                    product_key=key,
                    product_name=str(record["product_name"]),
                    category=_optional_str(record.get("category")),
                    subcategory=_optional_str(record.get("subcategory")),
                    cost=None if cost is None or cost != cost else coerce_decimal(cost),
                )
            )
        return products


def _optional_str(value: Any) -> str | None:
    if value is None or value != value or value == "":
        return None
    return str(value)
