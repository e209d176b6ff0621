"""
Sales Service - the sale ledger

WHY: A sale is the only operation that touches two documents at once. The
product stock decrement and the appended sale record are staged in the same
database transaction so they become durable together or not at all.

Ledger invariants (authoritative):
- Sales are append-only. There is no update, cancel or refund.
- Every SaleItem snapshots the product's name and price at commit time, so
  later catalog edits or deletes never change a historical invoice.
- item.total == item.price * item.quantity and
  sale.totalPrice == sum(item.total), computed in Decimal.
- A commit is rejected as a whole when any product id is unknown, any
  quantity is not a positive integer, or the requested quantity of a product
  exceeds its stock. Nothing is written for a rejected commit.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from flask import current_app

from ..records import Product, Sale, SaleItem
from ..time_utils import utcnow
from .catalog_service import Catalog
from .document_store import SALES, DocumentStore
from .identifier_service import next_record_id


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class SaleRequestItem:
    product_id: int
    quantity: int


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_request_items(items: Iterable) -> list[SaleRequestItem]:
    requested: list[SaleRequestItem] = []
    invalid = []
    for index, item in enumerate(items or []):
        if isinstance(item, SaleRequestItem):
            product_id, quantity = item.product_id, item.quantity
        elif isinstance(item, dict):
            product_id = item.get("productId", item.get("product_id"))
            quantity = item.get("quantity")
        else:
            invalid.append({"line": index + 1, "error": "line must be an object"})
            continue

        if not _is_int(product_id):
            invalid.append({"line": index + 1, "error": "productId must be an integer"})
        elif not _is_int(quantity) or quantity <= 0:
            invalid.append({"line": index + 1, "error": "quantity must be a positive integer"})
        else:
            requested.append(SaleRequestItem(product_id=product_id, quantity=quantity))

    if invalid:
        raise SaleError("Invalid sale lines", details={"lines": invalid})
    return requested


def _validate_on_hand(requested: list[SaleRequestItem], products: dict[int, Product]) -> None:
    product_totals: dict[int, int] = {}
    for line in requested:
        product_totals[line.product_id] = product_totals.get(line.product_id, 0) + line.quantity

    insufficient = []
    for product_id, qty in product_totals.items():
        on_hand = products[product_id].stock
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            })

    if insufficient:
        raise SaleError(
            "Insufficient stock to commit sale",
            details={"items": insufficient},
        )


def _clean_customer_name(customer_name: str | None) -> str | None:
    if customer_name is None:
        return None
    name = str(customer_name).strip()
    return name or None


class Ledger:
    def __init__(self, store: DocumentStore, catalog: Catalog | None = None):
        self.store = store
        self.catalog = catalog or Catalog(store)

    def all(self) -> list[Sale]:
        return [Sale.from_dict(row) for row in self.store.get_list(SALES)]

    def get_sale(self, sale_id: int) -> Sale | None:
        return next((s for s in self.all() if s.id == sale_id), None)

    def list_sales(self, search_term: str | None = None) -> list[Sale]:
        """Newest first; search matches the sale id or the customer name."""
        sales = self.all()
        if search_term:
            needle = search_term.strip().lower()
            sales = [
                s for s in sales
                if needle in str(s.id) or (s.customer_name and needle in s.customer_name.lower())
            ]
        return sorted(sales, key=lambda s: s.date, reverse=True)

    def recent_sales(self, n: int = 5) -> list[Sale]:
        """The last n sales in entry order, newest first."""
        if n <= 0:
            return []
        return list(reversed(self.all()[-n:]))

    def commit_sale(self, items: Iterable, customer_name: str | None = None) -> Sale:
        """
        Validate the lines, snapshot prices, decrement stock and append the sale.

        `items` holds SaleRequestItem values or {"productId", "quantity"} dicts.
        Lines for the same product stay separate on the invoice but are summed
        for the stock check.
        """
        requested = _coerce_request_items(items)
        if not requested:
            raise SaleError("Cannot commit sale with no items")

        products = self.catalog.all()
        by_id = {p.id: p for p in products}

        missing = list(dict.fromkeys(r.product_id for r in requested if r.product_id not in by_id))
        if missing:
            raise SaleError("Product not found", details={"product_ids": missing})

        _validate_on_hand(requested, by_id)

        sale_items = tuple(SaleItem.snapshot(by_id[r.product_id], r.quantity) for r in requested)
        for line in requested:
            by_id[line.product_id].stock -= line.quantity

        sales = self.all()
        sale = Sale(
            id=next_record_id(s.id for s in sales),
            date=utcnow().replace(microsecond=0),
            items=sale_items,
            total_price=sum((item.total for item in sale_items), Decimal("0")),
            customer_name=_clean_customer_name(customer_name),
        )
        sales.append(sale)

        try:
            self.catalog.save_all(products, commit=False)
            self.store.set(SALES, [s.to_dict() for s in sales], commit=False)
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

        current_app.logger.info(
            "Committed sale %s: %d line(s), total %s", sale.id, len(sale.items), sale.total_price
        )
        return sale
