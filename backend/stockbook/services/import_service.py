# Overview: Service-layer operations for imports; validates whole files before any document is replaced.

from __future__ import annotations

import csv
import io
import json
from enum import Enum
from typing import Any

from flask import current_app

from ..records import Product, Sale
from .document_store import PRODUCTS, SALES, SETTINGS, DocumentStore
from .identifier_service import allocate_record_ids
from .import_schemas import SCHEMAS
from .settings_service import SettingsValidationError, get_settings, validate_settings_patch

"""
Import invariants (authoritative)

- The caller names what the file holds (ImportKind); nothing is guessed from
  the shape of the data.
- Every row is validated before anything is written. One bad row rejects
  the whole file and the error lists every bad row.
- Products CSV rows are appended with fresh ids. Products JSON, sales JSON
  and backups replace the collections they carry.
- A backup replaces its collections in one transaction.
"""


class DataImportError(ValueError):
    """Raised when an import file is rejected."""
    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ImportKind(str, Enum):
    PRODUCTS = "products"
    SALES = "sales"
    BACKUP = "backup"


FORMAT_JSON = "json"
FORMAT_CSV = "csv"


def _parse_json(content: str) -> Any:
    try:
        return json.loads(content)
    except ValueError:
        raise DataImportError("The file is not valid JSON")


def _column(header: list[str], name: str) -> int:
    return next((i for i, h in enumerate(header) if name in h), -1)


def read_products_csv(content: str) -> list[dict[str, Any]]:
    """
    Raw product rows from CSV text.

    The header must name name, price and stock columns (case-insensitive
    substrings, any order); category is optional. Any ID column is ignored.
    """
    try:
        rows = list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))
    except csv.Error as exc:
        raise DataImportError(f"CSV could not be parsed: {exc}")

    if not rows:
        raise DataImportError("CSV file is empty")

    header = [h.strip().lower() for h in rows[0]]
    name_idx = _column(header, "name")
    category_idx = _column(header, "category")
    price_idx = _column(header, "price")
    stock_idx = _column(header, "stock")
    if -1 in (name_idx, price_idx, stock_idx):
        raise DataImportError("CSV must contain name, price, and stock columns")

    def cell(row: list[str], idx: int) -> str | None:
        return row[idx] if 0 <= idx < len(row) else None

    records = []
    for line_number, row in enumerate(rows[1:], start=2):
        if not any(c.strip() for c in row):
            continue
        records.append({
            "row_number": line_number,
            "name": cell(row, name_idx),
            "category": cell(row, category_idx),
            "price": cell(row, price_idx),
            "stock": cell(row, stock_idx),
        })
    return records


def _validate_rows(kind: str, raw_rows: list[Any]) -> list[dict[str, Any]]:
    schema = SCHEMAS[kind]
    normalized_rows = []
    errors = []
    for index, raw in enumerate(raw_rows, start=1):
        row_number = raw.get("row_number", index) if isinstance(raw, dict) else index
        if not isinstance(raw, dict):
            errors.append(f"Row {row_number}: expected an object")
            continue
        normalized = schema.normalize_row(raw)
        row_errors = schema.validate_row(normalized)
        if row_errors:
            errors.append(f"Row {row_number}: {'; '.join(row_errors)}")
        normalized_rows.append(normalized)

    if errors:
        raise DataImportError(f"Invalid {kind} data", errors=errors)
    return normalized_rows


def _assign_ids(normalized_rows: list[dict[str, Any]], reserved_ids: set[int], keep_ids: bool) -> list[int]:
    """Keep usable ids from the file; everything else gets a fresh one."""
    taken = set(reserved_ids)
    ids: list[int | None] = []
    for row in normalized_rows:
        row_id = row.get("id")
        if keep_ids and row_id is not None and row_id > 0 and row_id not in taken:
            taken.add(row_id)
            ids.append(row_id)
        else:
            ids.append(None)

    fresh = iter(allocate_record_ids(taken, ids.count(None)))
    return [row_id if row_id is not None else next(fresh) for row_id in ids]


def build_products(raw_rows: list[Any], *, reserved_ids: set[int] = frozenset(), keep_ids: bool) -> list[Product]:
    normalized_rows = _validate_rows("products", raw_rows)
    ids = _assign_ids(normalized_rows, reserved_ids, keep_ids)
    schema = SCHEMAS["products"]
    return [schema.to_record(row, row_id) for row, row_id in zip(normalized_rows, ids)]


def build_sales(raw_rows: list[Any]) -> list[Sale]:
    normalized_rows = _validate_rows("sales", raw_rows)
    ids = _assign_ids(normalized_rows, set(), keep_ids=True)
    schema = SCHEMAS["sales"]
    return [schema.to_record(row, row_id) for row, row_id in zip(normalized_rows, ids)]


def _require_list(data: Any, kind: str) -> list:
    if not isinstance(data, list) or not data:
        raise DataImportError(f"Expected a non-empty list of {kind}")
    return data


def import_products_csv(store: DocumentStore, content: str) -> dict:
    raw_rows = read_products_csv(content)
    if not raw_rows:
        raise DataImportError("No valid products found in CSV")

    existing = [Product.from_dict(row) for row in store.get_list(PRODUCTS)]
    imported = build_products(raw_rows, reserved_ids={p.id for p in existing}, keep_ids=False)
    store.set(PRODUCTS, [p.to_dict() for p in existing + imported])

    current_app.logger.info("Imported %d product(s) from CSV", len(imported))
    return {"kind": ImportKind.PRODUCTS.value, "mode": "append", "imported": len(imported)}


def import_products_json(store: DocumentStore, data: Any) -> dict:
    products = build_products(_require_list(data, "products"), keep_ids=True)
    store.set(PRODUCTS, [p.to_dict() for p in products])

    current_app.logger.info("Replaced catalog with %d imported product(s)", len(products))
    return {"kind": ImportKind.PRODUCTS.value, "mode": "replace", "imported": len(products)}


def import_sales_json(store: DocumentStore, data: Any) -> dict:
    sales = build_sales(_require_list(data, "sales"))
    store.set(SALES, [s.to_dict() for s in sales])

    current_app.logger.info("Replaced ledger with %d imported sale(s)", len(sales))
    return {"kind": ImportKind.SALES.value, "mode": "replace", "imported": len(sales)}


def import_backup(store: DocumentStore, data: Any) -> dict:
    """
    Restore a full backup. products is required; sales and settings are
    replaced only when the backup carries them.
    """
    if not isinstance(data, dict) or not isinstance(data.get("products"), list):
        raise DataImportError("A backup must be an object with a products list")

    products = build_products(data["products"], keep_ids=True) if data["products"] else []

    sales = None
    if data.get("sales") is not None:
        if not isinstance(data["sales"], list):
            raise DataImportError("Backup sales must be a list")
        sales = build_sales(data["sales"]) if data["sales"] else []

    settings = None
    if data.get("settings") is not None:
        raw_settings = data["settings"]
        if not isinstance(raw_settings, dict):
            raise DataImportError("Backup settings must be an object")
        try:
            cleaned = validate_settings_patch(raw_settings)
        except SettingsValidationError as exc:
            raise DataImportError("Invalid settings data", errors=[str(exc)])
        settings = get_settings(store).to_dict()
        settings.update(cleaned)

    try:
        store.set(PRODUCTS, [p.to_dict() for p in products], commit=False)
        if sales is not None:
            store.set(SALES, [s.to_dict() for s in sales], commit=False)
        if settings is not None:
            store.set(SETTINGS, settings, commit=False)
        store.commit()
    except Exception:
        store.rollback()
        raise

    sale_count = len(sales) if sales is not None else 0
    current_app.logger.info(
        "Restored backup: %d product(s), %d sale(s), settings %s",
        len(products), sale_count, "replaced" if settings is not None else "kept",
    )
    return {
        "kind": ImportKind.BACKUP.value,
        "mode": "replace",
        "imported": len(products) + sale_count,
        "products": len(products),
        "sales": sale_count,
        "settings": settings is not None,
    }


def import_file(store: DocumentStore, kind: ImportKind | str, content: str, fmt: str = FORMAT_JSON) -> dict:
    """Import file content of a stated kind and format."""
    try:
        kind = ImportKind(kind)
    except ValueError:
        raise DataImportError(f"Unsupported import kind: {kind}")

    fmt = (fmt or FORMAT_JSON).lower()
    if fmt == FORMAT_CSV:
        if kind is not ImportKind.PRODUCTS:
            raise DataImportError("CSV import is only supported for products")
        return import_products_csv(store, content)
    if fmt != FORMAT_JSON:
        raise DataImportError(f"Unsupported file format: {fmt}")

    data = _parse_json(content)
    if kind is ImportKind.PRODUCTS:
        return import_products_json(store, data)
    if kind is ImportKind.SALES:
        return import_sales_json(store, data)
    return import_backup(store, data)
