# Overview: Service-layer operations for auth; login session handle and user administration.

"""
Authentication Service

WHY: The presentation layer gates admin-only screens on the current user's
role, so it needs a trustworthy current-user handle and a users collection
that always keeps at least one admin.

SECURITY NOTES:
- Secrets are stored as bcrypt hashes in the users document; the stored
  documents of older installs kept them in plaintext.
- The current-user document never carries the secret.
- There is no rate limiting and no session expiry: the session is the one
  local profile. Do not expose this service beyond the loopback interface.
- Authorization is not enforced here. Route decorators do the role gating.
"""
from __future__ import annotations

import bcrypt
from flask import current_app

from ..records import ROLE_ADMIN, ROLE_SALES, ROLES, User
from ..validation import ConflictError, ValidationError
from .document_store import CURRENT_USER, USERS, DocumentStore
from .identifier_service import next_record_id

DEFAULT_USERS = (
    {"id": 1, "username": "admin", "password": "admin123", "role": ROLE_ADMIN},
    {"id": 2, "username": "sales", "password": "sales123", "role": ROLE_SALES},
)


class AuthError(Exception):
    """Raised when a user operation is refused."""
    pass


class LastAdminError(AuthError):
    """Raised when a change would leave no admin user."""
    pass


def hash_password(password: str) -> str:
    """Hash password using bcrypt; the cost factor comes from BCRYPT_ROUNDS."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in the document


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Anything that is not a bcrypt hash (including plaintext secrets from old
    stored documents) never verifies.
    """
    if not password_hash or not isinstance(password, str):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _validate_role(role: str) -> str:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    return role


def _validate_text(key: str, value) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{key} cannot be blank")
    return text


class AuthService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def _users(self) -> list[User]:
        return [User.from_dict(row) for row in self.store.get_list(USERS)]

    def _save(self, users: list[User], *, commit: bool = True) -> None:
        self.store.set(USERS, [u.to_dict(include_secret=True) for u in users], commit=commit)

    # -- session ---------------------------------------------------------

    def login(self, username: str, password: str) -> User | None:
        user = next((u for u in self._users() if u.username == username), None)
        if user is None or not verify_password(password or "", user.password):
            return None

        public = user.public()
        self.store.set(CURRENT_USER, public.to_dict())
        return public

    def logout(self) -> None:
        self.store.remove(CURRENT_USER)

    def current_user(self) -> User | None:
        """
        The logged-in user, re-read from the users document so that a deleted
        user loses the session and a role change applies immediately.
        """
        handle = self.store.get_dict(CURRENT_USER)
        if handle is None:
            return None
        user = next((u for u in self._users() if u.id == handle.get("id")), None)
        return user.public() if user else None

    # -- administration --------------------------------------------------

    def list_users(self) -> list[User]:
        return [u.public() for u in self._users()]

    def get_user(self, user_id: int) -> User | None:
        user = next((u for u in self._users() if u.id == user_id), None)
        return user.public() if user else None

    def create_user(self, username: str, password: str, role: str = ROLE_SALES) -> User:
        username = _validate_text("username", username)
        password = _validate_text("password", password)
        role = _validate_role(role)

        users = self._users()
        if any(u.username == username for u in users):
            raise ConflictError("Username already exists")

        user = User(
            id=next_record_id(u.id for u in users),
            username=username,
            role=role,
            password=hash_password(password),
        )
        users.append(user)
        self._save(users)
        return user.public()

    def update_user(
        self,
        user_id: int,
        *,
        username: str | None = None,
        password: str | None = None,
        role: str | None = None,
    ) -> User | None:
        """
        Rename, re-role or reset the password of a user.

        A blank password keeps the existing secret. Returns None when the id is
        unknown (nothing is written).
        """
        users = self._users()
        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            return None

        if username is not None:
            username = _validate_text("username", username)
            if any(u.username == username and u.id != user_id for u in users):
                raise ConflictError("Username already exists")
            user.username = username

        if role is not None:
            role = _validate_role(role)
            if user.is_admin and role != ROLE_ADMIN and not any(u.is_admin for u in users if u.id != user_id):
                raise LastAdminError("You must have at least one admin user")
            user.role = role

        if password:
            user.password = hash_password(password)

        self._save(users)
        return user.public()

    def delete_user(self, user_id: int, acting_user_id: int | None = None) -> bool:
        if acting_user_id is not None and acting_user_id == user_id:
            raise AuthError("You cannot delete your own account while logged in")

        users = self._users()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            return False
        if not any(u.is_admin for u in remaining):
            raise LastAdminError("You must have at least one admin user")

        self._save(remaining)
        return True

    def ensure_default_users(self) -> int:
        """Seed the default admin and sales users when no users document exists."""
        if self.store.has(USERS):
            return 0
        users = [
            User(id=row["id"], username=row["username"], role=row["role"], password=hash_password(row["password"]))
            for row in DEFAULT_USERS
        ]
        self._save(users)
        return len(users)
