# backend/stockbook/routes/reports.py
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..records import json_number
from ..services import reporting_service
from ..services.catalog_service import Catalog
from ..services.document_store import SETTINGS, DocumentStore
from ..services.sales_service import Ledger
from ..services.settings_service import get_settings


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _threshold(store: DocumentStore) -> int:
    """?threshold= first, then the saved setting, then LOW_STOCK_THRESHOLD."""
    threshold = request.args.get("threshold", type=int)
    if threshold is not None:
        return threshold
    if store.has(SETTINGS):
        return get_settings(store).low_stock_threshold
    return current_app.config["LOW_STOCK_THRESHOLD"]


def _windowed_sales(store: DocumentStore):
    return reporting_service.filter_by_window(Ledger(store).all(), request.args.get("window"))


@reports_bp.get("/summary")
@require_auth
def summary_report():
    store = DocumentStore()
    try:
        sales = _windowed_sales(store)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    summary = reporting_service.dashboard_summary(Catalog(store).all(), sales, _threshold(store))
    summary["total_revenue"] = json_number(summary["total_revenue"])
    summary["recent_sales"] = [s.to_dict() for s in Ledger(store).recent_sales(5)]
    return jsonify(summary), 200


@reports_bp.get("/revenue-by-date")
@require_auth
def revenue_by_date_report():
    try:
        sales = _windowed_sales(DocumentStore())
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    totals = reporting_service.revenue_by_date(sales)
    return jsonify({"items": [{"date": day, "revenue": json_number(v)} for day, v in totals.items()]}), 200


@reports_bp.get("/top-products")
@require_auth
def top_products_report():
    n = request.args.get("n", default=5, type=int)
    try:
        sales = _windowed_sales(DocumentStore())
        rows = reporting_service.top_products(sales, n)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    for row in rows:
        row["revenue"] = json_number(row["revenue"])
    return jsonify({"items": rows}), 200


@reports_bp.get("/category-distribution")
@require_auth
def category_distribution_report():
    counts = reporting_service.category_distribution(Catalog(DocumentStore()).all())
    return jsonify({"items": [{"category": c, "count": n} for c, n in counts.items()]}), 200


@reports_bp.get("/low-stock")
@require_auth
def low_stock_report():
    store = DocumentStore()
    threshold = _threshold(store)
    products = reporting_service.low_stock(Catalog(store).all(), threshold)
    return jsonify({"threshold": threshold, "items": [p.to_dict() for p in products]}), 200
