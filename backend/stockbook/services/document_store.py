# Overview: Service-layer access to the persisted JSON documents; the only module that reads or writes them.

from __future__ import annotations

import json
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import StoredDocument

"""
Document store invariants (authoritative)

- Each top-level collection is one JSON document keyed by name.
- A missing document reads as the caller's default.
- A document whose text is not valid JSON also reads as the default; it is
  logged and left in place until the next write replaces it.
- set(..., commit=False) only stages the write. Several staged writes become
  durable together on commit(), or not at all on rollback().
"""

USERS = "users"
PRODUCTS = "products"
SALES = "sales"
SETTINGS = "settings"
CURRENT_USER = "currentUser"

COLLECTIONS = (USERS, PRODUCTS, SALES, SETTINGS, CURRENT_USER)


class DocumentStore:
    """Key/value access to the JSON documents kept in the documents table."""

    def has(self, collection: str) -> bool:
        return db.session.get(StoredDocument, collection) is not None

    def get(self, collection: str, default: Any = None) -> Any:
        row = db.session.get(StoredDocument, collection)
        if row is None:
            return default
        try:
            return json.loads(row.value)
        except (TypeError, ValueError):
            current_app.logger.warning(
                "Stored document %r is not valid JSON; reading it as empty", collection
            )
            return default

    def get_list(self, collection: str) -> list:
        value = self.get(collection, [])
        if not isinstance(value, list):
            current_app.logger.warning("Stored document %r is not a list; reading it as empty", collection)
            return []
        return [row for row in value if isinstance(row, dict)]

    def get_dict(self, collection: str) -> dict | None:
        value = self.get(collection)
        return value if isinstance(value, dict) else None

    def set(self, collection: str, value: Any, *, commit: bool = True) -> None:
        payload = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        row = db.session.get(StoredDocument, collection)
        if row is None:
            db.session.add(StoredDocument(key=collection, value=payload))
        else:
            row.value = payload
        if commit:
            self.commit()

    def remove(self, collection: str, *, commit: bool = True) -> bool:
        row = db.session.get(StoredDocument, collection)
        if row is not None:
            db.session.delete(row)
        if commit:
            self.commit()
        return row is not None

    def commit(self) -> None:
        db.session.commit()

    def rollback(self) -> None:
        db.session.rollback()
