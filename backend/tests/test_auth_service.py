"""
Authentication and user administration tests.

Verifies:
- Secrets are stored as bcrypt hashes and never returned
- The session handle follows user changes
- At least one admin always remains
"""

import pytest

from stockbook.services.auth_service import AuthError, AuthService, LastAdminError
from stockbook.services.document_store import CURRENT_USER, USERS
from stockbook.validation import ConflictError, ValidationError


@pytest.fixture
def auth(store, default_users):
    return AuthService(store)


class TestDefaults:
    def test_default_users_seeded_once(self, store, auth):
        users = auth.list_users()
        assert [(u.id, u.username, u.role) for u in users] == [(1, "admin", "admin"), (2, "sales", "sales")]
        assert auth.ensure_default_users() == 0

    def test_secrets_are_hashed(self, store, auth):
        rows = store.get_list(USERS)
        assert all(row["password"].startswith("$2") for row in rows)
        assert all(u.password is None for u in auth.list_users())


class TestSession:
    def test_login_and_logout(self, store, auth):
        user = auth.login("admin", "admin123")
        assert user.username == "admin"
        assert "password" not in store.get_dict(CURRENT_USER)
        assert auth.current_user().id == 1

        auth.logout()
        assert auth.current_user() is None

    def test_wrong_password(self, auth):
        assert auth.login("admin", "nope") is None
        assert auth.login("nobody", "admin123") is None
        assert auth.current_user() is None

    def test_plaintext_secret_never_verifies(self, store, auth):
        store.set(USERS, [{"id": 5, "username": "legacy", "password": "pw", "role": "admin"}])
        assert auth.login("legacy", "pw") is None

    def test_non_string_password_never_verifies(self, auth):
        assert auth.login("admin", 12345) is None
        assert auth.current_user() is None

    def test_deleted_user_loses_session(self, auth):
        created = auth.create_user("temp", "secret", "sales")
        auth.login("temp", "secret")
        auth.delete_user(created.id, acting_user_id=1)
        assert auth.current_user() is None

    def test_role_change_applies_to_session(self, auth):
        auth.login("sales", "sales123")
        auth.update_user(2, role="admin")
        assert auth.current_user().role == "admin"


class TestAdministration:
    def test_create_user(self, auth):
        user = auth.create_user("clerk", "pw", "sales")
        assert user.password is None
        assert auth.login("clerk", "pw").id == user.id

    def test_duplicate_username(self, auth):
        with pytest.raises(ConflictError):
            auth.create_user("admin", "x", "admin")

    @pytest.mark.parametrize("username,password,role", [("", "pw", "sales"), ("a", "", "sales"), ("a", "pw", "root")])
    def test_invalid_user(self, auth, username, password, role):
        with pytest.raises(ValidationError):
            auth.create_user(username, password, role)

    def test_update_blank_password_keeps_secret(self, auth):
        auth.update_user(2, username="seller", password="")
        assert auth.login("seller", "sales123") is not None

    def test_update_password(self, auth):
        auth.update_user(2, password="newpass")
        assert auth.login("sales", "sales123") is None
        assert auth.login("sales", "newpass") is not None

    def test_update_missing_user(self, auth):
        assert auth.update_user(999, username="ghost") is None

    def test_rename_to_taken_username(self, auth):
        with pytest.raises(ConflictError):
            auth.update_user(2, username="admin")


class TestLastAdmin:
    def test_cannot_delete_sole_admin(self, auth):
        with pytest.raises(LastAdminError):
            auth.delete_user(1)
        assert len(auth.list_users()) == 2

    def test_can_delete_non_last_admin(self, auth):
        second = auth.create_user("boss", "pw", "admin")
        assert auth.delete_user(1, acting_user_id=second.id) is True
        assert [u.username for u in auth.list_users()] == ["sales", "boss"]

    def test_cannot_demote_sole_admin(self, auth):
        with pytest.raises(LastAdminError):
            auth.update_user(1, role="sales")

    def test_cannot_delete_self(self, auth):
        auth.create_user("boss", "pw", "admin")
        with pytest.raises(AuthError):
            auth.delete_user(1, acting_user_id=1)

    def test_delete_missing_user(self, auth):
        assert auth.delete_user(999) is False
