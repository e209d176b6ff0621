"""
Pytest fixtures for Stockbook backend tests.

Provides an in-memory database, a document store and a test client.
"""

import pytest

from stockbook import create_app
from stockbook.extensions import db
from stockbook.services.auth_service import AuthService
from stockbook.services.catalog_service import Catalog
from stockbook.services.document_store import DocumentStore


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SEED_DEFAULTS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    return DocumentStore()


@pytest.fixture(scope='function')
def catalog(store):
    return Catalog(store)


@pytest.fixture(scope='function')
def default_users(store):
    """admin/admin123 (id 1) and sales/sales123 (id 2)."""
    AuthService(store).ensure_default_users()


@pytest.fixture(scope='function')
def product(catalog):
    """Product with stock 10 at 20.00."""
    return catalog.add({"name": "Widget", "category": "Tools", "price": "20.00", "stock": 10})


def login(client, username: str, password: str):
    """Helper to log in through the API."""
    return client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })


@pytest.fixture(scope='function')
def admin_client(client, default_users):
    resp = login(client, 'admin', 'admin123')
    assert resp.status_code == 200
    return client


@pytest.fixture(scope='function')
def sales_client(client, default_users):
    resp = login(client, 'sales', 'sales123')
    assert resp.status_code == 200
    return client
