# backend/stockbook/records.py
"""
In-memory records for the persisted JSON documents.

Persisted keys keep the camelCase names of the stored documents (productId,
totalPrice, customerName, ...) so files written by earlier versions load
unchanged. Money is Decimal in memory and a plain JSON number on disk.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .time_utils import parse_iso_datetime, to_utc_z

ROLE_ADMIN = "admin"
ROLE_SALES = "sales"
ROLES = (ROLE_ADMIN, ROLE_SALES)

DEFAULT_COMPANY_NAME = "Inventory System"
DEFAULT_LOW_STOCK_THRESHOLD = 5

# Sales whose stored date cannot be parsed sort as the oldest entries.
UNDATED_SALE = datetime(1970, 1, 1)


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return default
    return result if result.is_finite() else default


def json_number(value: Decimal) -> int | float:
    """Decimal -> the JSON number the documents store (20 rather than 20.0)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def format_decimal(value: Decimal) -> str:
    """Plain text form without exponent or trailing zeros: 20, 19.5, 1299.99."""
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


@dataclass
class Product:
    id: int
    name: str
    category: str
    price: Decimal
    stock: int
    image: str | None = None

    @property
    def is_out_of_stock(self) -> bool:
        # Negative stock is representable after old unchecked sales.
        return self.stock <= 0

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": json_number(self.price),
            "stock": self.stock,
        }
        if self.image:
            data["image"] = self.image
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=_to_int(data.get("id")),
            name=str(data.get("name") or ""),
            category=str(data.get("category") or ""),
            price=to_decimal(data.get("price")),
            stock=_to_int(data.get("stock")),
            image=data.get("image") or None,
        )


@dataclass(frozen=True)
class SaleItem:
    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    total: Decimal

    @classmethod
    def snapshot(cls, product: Product, quantity: int) -> "SaleItem":
        """Copy the product's name and price as they are right now."""
        return cls(
            product_id=product.id,
            product_name=product.name,
            price=product.price,
            quantity=quantity,
            total=product.price * quantity,
        )

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": json_number(self.price),
            "total": json_number(self.total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaleItem":
        price = to_decimal(data.get("price"))
        quantity = _to_int(data.get("quantity"))
        total = data.get("total")
        return cls(
            product_id=_to_int(data.get("productId")),
            product_name=str(data.get("productName") or ""),
            price=price,
            quantity=quantity,
            total=to_decimal(total) if total is not None else price * quantity,
        )


@dataclass(frozen=True)
class Sale:
    id: int
    date: datetime
    items: tuple[SaleItem, ...]
    total_price: Decimal
    customer_name: str | None = None

    @property
    def items_total(self) -> Decimal:
        return sum((item.total for item in self.items), Decimal("0"))

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "date": to_utc_z(self.date),
            "items": [item.to_dict() for item in self.items],
            "totalPrice": json_number(self.total_price),
        }
        if self.customer_name:
            data["customerName"] = self.customer_name
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        raw_items = data.get("items")
        items = tuple(
            SaleItem.from_dict(row)
            for row in (raw_items if isinstance(raw_items, list) else [])
            if isinstance(row, dict)
        )
        try:
            date = parse_iso_datetime(data.get("date")) if isinstance(data.get("date"), str) else None
        except ValueError:
            date = None
        total = data.get("totalPrice")
        return cls(
            id=_to_int(data.get("id")),
            date=date or UNDATED_SALE,
            items=items,
            total_price=to_decimal(total) if total is not None else sum((i.total for i in items), Decimal("0")),
            customer_name=data.get("customerName") or None,
        )


@dataclass
class User:
    id: int
    username: str
    role: str
    password: str | None = field(default=None, repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def public(self) -> "User":
        """Copy of the user with the secret stripped."""
        return replace(self, password=None)

    def to_dict(self, include_secret: bool = False) -> dict:
        data = {"id": self.id, "username": self.username, "role": self.role}
        if include_secret and self.password is not None:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=_to_int(data.get("id")),
            username=str(data.get("username") or ""),
            role=str(data.get("role") or ROLE_SALES),
            password=data.get("password"),
        )


@dataclass
class Settings:
    company_name: str = DEFAULT_COMPANY_NAME
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    dark_mode: bool = False

    def to_dict(self) -> dict:
        return {
            "companyName": self.company_name,
            "lowStockThreshold": self.low_stock_threshold,
            "darkMode": self.dark_mode,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        defaults = cls()
        company_name = data.get("companyName")
        dark_mode = data.get("darkMode")
        return cls(
            company_name=str(company_name).strip() if company_name else defaults.company_name,
            low_stock_threshold=_to_int(data.get("lowStockThreshold"), defaults.low_stock_threshold),
            dark_mode=dark_mode if isinstance(dark_mode, bool) else defaults.dark_mode,
        )
