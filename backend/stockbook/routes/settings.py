# Overview: Flask API routes for settings and data management (export, import, reset).

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..records import ROLE_ADMIN
from ..services import export_service
from ..services.catalog_service import Catalog
from ..services.document_store import DocumentStore
from ..services.import_service import DataImportError, import_file
from ..services.maintenance_service import reset_system
from ..services.sales_service import Ledger
from ..services.settings_service import SettingsValidationError, get_settings, save_settings


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")

_MIMETYPES = {"json": "application/json", "csv": "text/csv"}


@settings_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def get_settings_route():
    return jsonify(get_settings(DocumentStore()).to_dict()), 200


@settings_bp.put("")
@require_auth
@require_role(ROLE_ADMIN)
def save_settings_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "JSON object required"}), 400
    try:
        settings = save_settings(DocumentStore(), payload)
    except SettingsValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(settings.to_dict()), 200


@settings_bp.get("/export")
@require_auth
def export_route():
    """
    Download data as a file.

    Query params:
    - kind: products | sales | backup (default backup)
    - format: json | csv (csv for products and sales only)
    - price_format: raw | fixed (products CSV)
    - items: true to add the item count column (sales CSV)
    """
    kind = request.args.get("kind", "backup")
    fmt = request.args.get("format", "json").lower()
    store = DocumentStore()
    products = Catalog(store).all()
    sales = Ledger(store).all()

    try:
        if kind == "backup" and fmt == "json":
            body = export_service.backup_to_json(products, sales, get_settings(store))
        elif kind == "products" and fmt == "json":
            body = export_service.products_to_json(products)
        elif kind == "products" and fmt == "csv":
            body = export_service.products_to_csv(products, request.args.get("price_format", "raw"))
        elif kind == "sales" and fmt == "json":
            body = export_service.sales_to_json(sales)
        elif kind == "sales" and fmt == "csv":
            include_items = request.args.get("items", "false").lower() == "true"
            body = export_service.sales_to_csv(sales, include_items=include_items)
        else:
            return jsonify({"error": f"Cannot export {kind} as {fmt}"}), 400
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    filename = f"{'inventory-backup' if kind == 'backup' else kind}.{fmt}"
    return Response(
        body,
        mimetype=_MIMETYPES[fmt],
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@settings_bp.post("/import")
@require_auth
@require_role(ROLE_ADMIN)
def import_route():
    """
    Import a file. The caller states what it holds.

    Multipart: file=<upload>, kind=products|sales|backup; the format comes
    from the file extension.
    JSON body: {"kind": ..., "format": "json"|"csv", "content": "<file text>"}
    """
    if "file" in request.files:
        upload = request.files["file"]
        kind = request.form.get("kind")
        fmt = (upload.filename or "").rsplit(".", 1)[-1].lower()
        try:
            content = upload.stream.read().decode("utf-8")
        except UnicodeDecodeError:
            return jsonify({"error": "File must be UTF-8 text"}), 400
    else:
        data = request.get_json(silent=True) or {}
        kind = data.get("kind")
        fmt = data.get("format", "json")
        content = data.get("content")
        if not isinstance(content, str):
            return jsonify({"error": "content is required"}), 400

    if not kind:
        return jsonify({"error": "kind is required"}), 400

    try:
        result = import_file(DocumentStore(), kind, content, fmt)
    except DataImportError as exc:
        return jsonify({"error": str(exc), "errors": exc.errors}), 400
    except Exception:
        current_app.logger.exception("Import failed")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200


@settings_bp.post("/reset")
@require_auth
@require_role(ROLE_ADMIN)
def reset_route():
    """Delete products, sales and settings. Users are kept."""
    data = request.get_json(silent=True) or {}
    if data.get("confirm") is not True:
        return jsonify({"error": "Reset requires {\"confirm\": true}"}), 400
    reset_system(DocumentStore())
    return jsonify({"ok": True}), 200
