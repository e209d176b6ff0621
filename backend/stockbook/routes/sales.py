# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/stockbook/routes/sales.py
"""Sales API routes. Any logged-in user may sell and browse sales."""

from flask import Blueprint, request, jsonify
from flask import current_app

from ..decorators import require_auth
from ..services.document_store import DocumentStore
from ..services.sales_service import Ledger, SaleError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """Newest first. ?search= matches the sale id or the customer name."""
    sales = Ledger(DocumentStore()).list_sales(request.args.get("search"))
    return jsonify({"items": [s.to_dict() for s in sales]}), 200


@sales_bp.get("/recent")
@require_auth
def recent_sales_route():
    n = request.args.get("n", default=5, type=int)
    sales = Ledger(DocumentStore()).recent_sales(n)
    return jsonify({"items": [s.to_dict() for s in sales]}), 200


@sales_bp.post("")
@require_auth
def commit_sale_route():
    """
    Commit a sale.

    Body: {"customerName": optional str, "items": [{"productId": int, "quantity": int}, ...]}
    The whole sale is rejected (400, nothing written) when a line is invalid,
    a product is unknown or stock is short.
    """
    data = request.get_json(silent=True) or {}
    items = data.get("items")
    if not isinstance(items, list):
        return jsonify({"error": "items must be a list"}), 400

    try:
        sale = Ledger(DocumentStore()).commit_sale(items, customer_name=data.get("customerName"))
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to commit sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"sale": sale.to_dict()}), 201


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    sale = Ledger(DocumentStore()).get_sale(sale_id)
    if sale is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict()}), 200
