"""
Pytest fixtures for SGPro backend tests.

Provides an application with an in-memory SQLite database, a test client,
login helpers, and a memory-backed Store for service-level tests.
"""

import pytest

from sgpro import create_app
from sgpro.decorators import STORE_EXTENSION_KEY
from sgpro.storage import MemoryStorage
from sgpro.store import Store


@pytest.fixture(scope='function')
def app():
    """Create application for testing (fresh database per test)."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SGPRO_SEED_DEFAULTS': False,
    })
    yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def app_store(app):
    """The Store owned by the application."""
    return app.extensions[STORE_EXTENSION_KEY]


@pytest.fixture(scope='function')
def login(client):
    """
    Open the session as one of the default users (admin, gerente, operador).

    The issued bearer token is attached to every later request of `client`.
    """
    def _login(username, password=None):
        resp = client.post(
            "/api/auth/login",
            json={"username": username, "password": password or username},
        )
        assert resp.status_code == 200, resp.get_json()
        client.environ_base["HTTP_AUTHORIZATION"] = f"Bearer {resp.get_json()['token']}"
        return resp.get_json()["user"]
    return _login


@pytest.fixture(scope='function')
def storage():
    return MemoryStorage()


@pytest.fixture(scope='function')
def store(storage):
    """Memory-backed Store with default users and no sample products."""
    return Store(storage, seed_defaults=False).init()


@pytest.fixture(scope='function')
def product(store):
    """Product A1 from the stock scenario: cost 10, price 20, stock 5."""
    return store.add_product({
        "code": "A1",
        "name": "Caneta Azul",
        "category": "Papelaria",
        "cost": 10,
        "price": 20,
        "stock": 5,
        "description": "",
    })
