# backend/stockbook/services/catalog_service.py
"""
Catalog Service - the product collection

The catalog owns the products document. The ledger borrows it during a sale
commit (stock only); reports only ever read snapshots of it.

Missing ids: update() and delete() on an id that is not in the catalog are
silent no-ops. Callers learn about it from the return value (None / False),
never from an exception.
"""
from __future__ import annotations

from ..records import Product
from ..validation import (
    DECIMAL,
    INTEGER,
    OPTIONAL_TEXT,
    TEXT,
    RecordValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .document_store import PRODUCTS, DocumentStore
from .identifier_service import next_record_id

PRODUCT_POLICY = RecordValidationPolicy(
    field_types={
        "name": TEXT,
        "category": TEXT,
        "price": DECIMAL,
        "stock": INTEGER,
        "image": OPTIONAL_TEXT,
    },
    required_on_create=frozenset({"name", "category", "price", "stock"}),
)

# The product list's "low" filter is fixed at 5, independent of the
# configurable report threshold.
LOW_STOCK_LEVEL = 5

STOCK_LEVEL_ALL = "all"
STOCK_LEVEL_LOW = "low"
STOCK_LEVEL_OUT = "out"
STOCK_LEVELS = (STOCK_LEVEL_ALL, STOCK_LEVEL_LOW, STOCK_LEVEL_OUT)


def validate_product_draft(draft: dict) -> dict:
    """Validated constructor kwargs for a Product (everything except id)."""
    patch = validate_payload(payload=draft, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    patch.setdefault("image", None)
    return patch


def matches_filters(
    product: Product,
    *,
    search_term: str | None = None,
    category: str | None = None,
    stock_level: str = STOCK_LEVEL_ALL,
) -> bool:
    if search_term:
        needle = search_term.lower()
        if needle not in product.name.lower() and needle not in product.category.lower():
            return False

    if category and category != "all" and product.category != category:
        return False

    if stock_level == STOCK_LEVEL_LOW:
        return product.stock < LOW_STOCK_LEVEL
    if stock_level == STOCK_LEVEL_OUT:
        return product.is_out_of_stock
    return True


class Catalog:
    def __init__(self, store: DocumentStore):
        self.store = store

    def all(self) -> list[Product]:
        return [Product.from_dict(row) for row in self.store.get_list(PRODUCTS)]

    def save_all(self, products: list[Product], *, commit: bool = True) -> None:
        self.store.set(PRODUCTS, [p.to_dict() for p in products], commit=commit)

    def get(self, product_id: int) -> Product | None:
        return next((p for p in self.all() if p.id == product_id), None)

    def add(self, draft: dict) -> Product:
        """Create a product from a draft (name, category, price, stock, image)."""
        fields = validate_product_draft(draft)
        products = self.all()
        product = Product(id=next_record_id(p.id for p in products), **fields)
        products.append(product)
        self.save_all(products)
        return product

    def update(self, product: Product | dict) -> Product | None:
        """
        Replace the stored record with the same id.

        Returns the stored product, or None when the id is not in the catalog
        (nothing is written in that case).
        """
        data = product.to_dict() if isinstance(product, Product) else dict(product or {})
        product_id = data.pop("id", None)
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            raise ValidationError("id must be an integer")

        fields = validate_product_draft(data)
        products = self.all()
        for index, existing in enumerate(products):
            if existing.id == product_id:
                products[index] = Product(id=product_id, **fields)
                self.save_all(products)
                return products[index]
        return None

    def delete(self, product_id: int) -> bool:
        products = self.all()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            return False
        self.save_all(remaining)
        return True

    def list(
        self,
        *,
        search_term: str | None = None,
        category: str | None = None,
        stock_level: str = STOCK_LEVEL_ALL,
    ) -> list[Product]:
        """
        Filtered product listing. Filters compose with AND:
        - search_term: case-insensitive substring of name OR category
        - category: exact category ("all" or None for any)
        - stock_level: all | low (< 5) | out (<= 0)
        """
        stock_level = (stock_level or STOCK_LEVEL_ALL).lower()
        if stock_level not in STOCK_LEVELS:
            raise ValidationError(f"stock level must be one of: {', '.join(STOCK_LEVELS)}")
        return [
            p for p in self.all()
            if matches_filters(p, search_term=search_term, category=category, stock_level=stock_level)
        ]

    def categories(self) -> set[str]:
        return {p.category for p in self.all()}

    def available_for_sale(self) -> list[Product]:
        """Products the item picker may offer: anything with stock left."""
        return [p for p in self.all() if not p.is_out_of_stock]
