# backend/stockbook/routes/system.py
"""
System health endpoint.

Reports whether the documents table is reachable and which collections
exist, for the desktop shell to check before it opens the UI.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import StoredDocument
from ..services.document_store import COLLECTIONS
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        keys = {row.key for row in db.session.query(StoredDocument.key).all()}
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {name: name in keys for name in COLLECTIONS},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: the documents table answers
    - 503: it does not
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200
    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status
