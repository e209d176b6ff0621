# Overview: Flask API routes for auth and user administration; parses input and returns JSON responses.

# backend/stockbook/routes/auth.py
"""
Authentication and user administration routes

SECURITY:
- Login verifies the bcrypt hash; the response never carries the secret.
- User administration requires the admin role.
- An admin cannot delete their own account, and the last admin can be
  neither deleted nor demoted.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..records import ROLE_ADMIN, ROLE_SALES
from ..services.auth_service import AuthError, AuthService, LastAdminError
from ..services.document_store import DocumentStore
from ..validation import ConflictError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _auth() -> AuthService:
    return AuthService(DocumentStore())


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not isinstance(username, str) or not isinstance(password, str) or not all([username, password]):
        return jsonify({"error": "username and password required"}), 400

    user = _auth().login(username, password)
    if user is None:
        current_app.logger.info("Failed login for %r", username)
        return jsonify({"error": "Invalid username or password"}), 401

    return jsonify({"user": user.to_dict()}), 200


@auth_bp.post("/logout")
def logout_route():
    _auth().logout()
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users_route():
    return jsonify({"items": [u.to_dict() for u in _auth().list_users()]}), 200


@users_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_user_route():
    data = request.get_json(silent=True) or {}
    try:
        user = _auth().create_user(
            username=data.get("username"),
            password=data.get("password"),
            role=data.get("role") or ROLE_SALES,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"user": user.to_dict()}), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user_route(user_id: int):
    """Partial update; a blank or missing password keeps the current one."""
    data = request.get_json(silent=True) or {}
    try:
        user = _auth().update_user(
            user_id,
            username=data.get("username"),
            password=data.get("password") or None,
            role=data.get("role"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except LastAdminError as e:
        return jsonify({"error": str(e)}), 409

    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"user": user.to_dict()}), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_user_route(user_id: int):
    try:
        deleted = _auth().delete_user(user_id, acting_user_id=g.current_user.id)
    except LastAdminError as e:
        return jsonify({"error": str(e)}), 409
    except AuthError as e:
        return jsonify({"error": str(e)}), 400

    if not deleted:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"ok": True}), 200
