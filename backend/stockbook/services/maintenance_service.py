# Overview: Service-layer operations for maintenance; first-run seeding and system reset.

from __future__ import annotations

from flask import current_app

from .auth_service import AuthService
from .document_store import PRODUCTS, SALES, SETTINGS, DocumentStore

PLACEHOLDER_IMAGE = "/placeholder.svg?height=200&width=200"

DEFAULT_PRODUCTS = (
    {"id": 1, "name": "Laptop Pro", "category": "Electronics", "price": 1299.99, "stock": 15},
    {"id": 2, "name": "Wireless Headphones", "category": "Audio", "price": 149.99, "stock": 25},
    {"id": 3, "name": "Smartphone X", "category": "Electronics", "price": 899.99, "stock": 10},
    {"id": 4, "name": "Coffee Maker", "category": "Kitchen", "price": 79.99, "stock": 8},
    {"id": 5, "name": "Fitness Tracker", "category": "Wearables", "price": 129.99, "stock": 20},
    {"id": 6, "name": "Bluetooth Speaker", "category": "Audio", "price": 89.99, "stock": 12},
    {"id": 7, "name": "Desk Chair", "category": "Furniture", "price": 199.99, "stock": 5},
    {"id": 8, "name": "LED Monitor", "category": "Electronics", "price": 249.99, "stock": 7},
    {"id": 9, "name": "Wireless Mouse", "category": "Accessories", "price": 39.99, "stock": 30},
    {"id": 10, "name": "External Hard Drive", "category": "Storage", "price": 119.99, "stock": 18},
)


def seed_defaults(store: DocumentStore) -> dict:
    """
    Seed whatever first-run data is missing.

    Each document is only written when absent, so an existing install is
    never overwritten. Returns what was seeded.
    """
    seeded = {"users": AuthService(store).ensure_default_users(), "products": 0, "sales": False}

    if not store.has(PRODUCTS):
        store.set(
            PRODUCTS,
            [dict(row, image=PLACEHOLDER_IMAGE) for row in DEFAULT_PRODUCTS],
            commit=False,
        )
        seeded["products"] = len(DEFAULT_PRODUCTS)

    if not store.has(SALES):
        store.set(SALES, [], commit=False)
        seeded["sales"] = True

    store.commit()
    if seeded["users"] or seeded["products"]:
        current_app.logger.info(
            "Seeded %d default user(s) and %d demo product(s)", seeded["users"], seeded["products"]
        )
    return seeded


def reset_system(store: DocumentStore) -> None:
    """Remove products, sales and settings; users and the login session survive."""
    try:
        for key in (PRODUCTS, SALES, SETTINGS):
            store.remove(key, commit=False)
        store.commit()
    except Exception:
        store.rollback()
        raise
    current_app.logger.warning("System reset: products, sales and settings removed")
