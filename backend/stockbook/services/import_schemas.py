from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ..records import Product, Sale, SaleItem
from ..time_utils import parse_iso_datetime
from ..validation import MAX_PRICE, ValidationError, _coerce_integer

DEFAULT_CATEGORY = "Uncategorized"

# Files written by the browser app carry float artifacts such as
# 0.30000000000000004; totals within half a cent reconcile.
RECONCILE_TOLERANCE = Decimal("0.005")


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return _coerce_integer("value", value)
    except ValidationError:
        return None


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


class BaseImportSchema:
    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        raise NotImplementedError


class ProductsSchema(BaseImportSchema):
    """
    Product rows from CSV or JSON files.

    Stock is any integer: restored data may carry the negative stock that
    unchecked sales left behind.
    """

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": _to_int(raw_row.get("id")),
            "name": _to_text(raw_row.get("name")),
            "category": _to_text(raw_row.get("category")) or DEFAULT_CATEGORY,
            "price": _to_decimal(raw_row.get("price")),
            "stock": _to_int(raw_row.get("stock")),
            "image": _to_text(raw_row.get("image")),
        }

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        if not normalized_row.get("name"):
            errors.append("name is required")
        price = normalized_row.get("price")
        if price is None:
            errors.append("price must be a number")
        elif price < 0:
            errors.append("price must be >= 0")
        elif price > MAX_PRICE:
            errors.append(f"price cannot exceed {MAX_PRICE:,.2f}")
        if normalized_row.get("stock") is None:
            errors.append("stock must be an integer")
        return errors

    def to_record(self, normalized_row: dict[str, Any], record_id: int) -> Product:
        return Product(
            id=record_id,
            name=normalized_row["name"],
            category=normalized_row["category"],
            price=normalized_row["price"],
            stock=normalized_row["stock"],
            image=normalized_row.get("image"),
        )


class SalesSchema(BaseImportSchema):
    """Sale records from a JSON export; totals are recomputed from the lines."""

    def _normalize_item(self, raw_item: Any) -> dict[str, Any]:
        raw_item = raw_item if isinstance(raw_item, dict) else {}
        return {
            "productId": _to_int(raw_item.get("productId")),
            "productName": _to_text(raw_item.get("productName")),
            "price": _to_decimal(raw_item.get("price")),
            "quantity": _to_int(raw_item.get("quantity")),
            "total": _to_decimal(raw_item.get("total")),
        }

    def normalize_row(self, raw_row: dict[str, Any]) -> dict[str, Any]:
        raw_items = raw_row.get("items")
        try:
            date = parse_iso_datetime(raw_row.get("date")) if isinstance(raw_row.get("date"), str) else None
        except ValueError:
            date = None
        return {
            "id": _to_int(raw_row.get("id")),
            "date": date,
            "customerName": _to_text(raw_row.get("customerName")),
            "items": [self._normalize_item(i) for i in raw_items] if isinstance(raw_items, list) else None,
            "totalPrice": _to_decimal(raw_row.get("totalPrice")),
        }

    def validate_row(self, normalized_row: dict[str, Any]) -> list[str]:
        errors: list[str] = []
        if normalized_row.get("date") is None:
            errors.append("date must be an ISO-8601 datetime")

        items = normalized_row.get("items")
        if not items:
            errors.append("items must be a non-empty list")
            return errors

        computed_total = Decimal("0")
        for index, item in enumerate(items, start=1):
            if item["productId"] is None:
                errors.append(f"item {index}: productId must be an integer")
            if not item["productName"]:
                errors.append(f"item {index}: productName is required")
            if item["price"] is None or item["price"] < 0:
                errors.append(f"item {index}: price must be a number >= 0")
                continue
            if item["quantity"] is None or item["quantity"] <= 0:
                errors.append(f"item {index}: quantity must be a positive integer")
                continue
            line_total = item["price"] * item["quantity"]
            if item["total"] is not None and abs(item["total"] - line_total) > RECONCILE_TOLERANCE:
                errors.append(f"item {index}: total does not equal price * quantity")
            computed_total += line_total

        total_price = normalized_row.get("totalPrice")
        if not errors and total_price is not None and abs(total_price - computed_total) > RECONCILE_TOLERANCE:
            errors.append("totalPrice does not equal the sum of item totals")
        return errors

    def to_record(self, normalized_row: dict[str, Any], record_id: int) -> Sale:
        items = tuple(
            SaleItem(
                product_id=item["productId"],
                product_name=item["productName"],
                price=item["price"],
                quantity=item["quantity"],
                total=item["price"] * item["quantity"],
            )
            for item in normalized_row["items"]
        )
        return Sale(
            id=record_id,
            date=normalized_row["date"],
            items=items,
            total_price=sum((i.total for i in items), Decimal("0")),
            customer_name=normalized_row.get("customerName"),
        )


SCHEMAS = {
    "products": ProductsSchema(),
    "sales": SalesSchema(),
}
