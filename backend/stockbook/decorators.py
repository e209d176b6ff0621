# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import jsonify, g

from .services.auth_service import AuthService
from .services.document_store import DocumentStore


def require_auth(f):
    """
    Require a logged-in user.

    Sets g.current_user to the public User (no secret). The session is the
    single local profile, so there is no token; logout ends it for everyone.
    Returns 401 when nobody is logged in or the logged-in user was deleted.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = AuthService(DocumentStore()).current_user()
        if user is None:
            return jsonify({"error": "Authentication required"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str):
    """Require the authenticated user to hold a role. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required"}), 401
            if g.current_user.role != role:
                return jsonify({
                    "error": "Permission denied",
                    "required_role": role,
                }), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator
