# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockbook/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require a logged-in user.
- Read operations are open to every role
- Write operations require the admin role
"""
from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_role
from ..records import ROLE_ADMIN
from ..services.catalog_service import Catalog
from ..services.document_store import DocumentStore
from ..validation import ValidationError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _catalog() -> Catalog:
    return Catalog(DocumentStore())


@products_bp.get("")
@require_auth
def list_products():
    """
    List products.

    Query params (all optional, combined with AND):
    - search: case-insensitive substring of name or category
    - category: exact category, "all" for any
    - stock: all | low | out
    """
    try:
        products = _catalog().list(
            search_term=request.args.get("search"),
            category=request.args.get("category"),
            stock_level=request.args.get("stock", "all"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"items": [p.to_dict() for p in products]}


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"items": sorted(_catalog().categories())}


@products_bp.get("/available")
@require_auth
def list_available():
    """Products with stock left, for the new-sale item picker."""
    return {"items": [p.to_dict() for p in _catalog().available_for_sale()]}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    product = _catalog().get(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@products_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        created = _catalog().add(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    current_app.logger.info("Created product %s (%s)", created.id, created.name)
    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_product_route(product_id: int):
    """Replace a product. The id in the URL wins over any id in the body."""
    payload = request.get_json(silent=True) or {}
    payload = {k: v for k, v in payload.items() if k != "id"}

    try:
        updated = _catalog().update({"id": product_id, **payload})
    except ValidationError as e:
        return {"error": str(e)}, 400

    if updated is None:
        return {"error": "Product not found"}, 404
    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_product_route(product_id: int):
    if not _catalog().delete(product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
