"""Shared fixtures: fresh in-memory collaborators per test, wired into the app."""

from typing import Callable

import pytest
from fastapi.testclient import TestClient

from cafe.main import app
from cafe.services.identity import MockIdentityProvider, get_identity_provider
from cafe.services.storage import InMemoryKeyValueStore, get_kv_store

PASSWORD = "correct-horse"


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def identity() -> MockIdentityProvider:
    return MockIdentityProvider()


@pytest.fixture
def client(store, identity):
    app.dependency_overrides[get_kv_store] = lambda: store
    app.dependency_overrides[get_identity_provider] = lambda: identity
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client) -> Callable[..., dict]:
    """Sign up and log in; returns auth headers plus the user view."""

    def _make(email: str, role: str = "employee", name: str = "Test User") -> dict:
        response = client.post(
            "/auth/signup",
            json={"email": email, "password": PASSWORD, "name": name, "role": role},
        )
        assert response.status_code == 200, response.text
        login = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert login.status_code == 200, login.text
        body = login.json()
        return {
            "headers": {"Authorization": f"Bearer {body['access_token']}"},
            "user": body["user"],
        }

    return _make


@pytest.fixture
def admin(make_user) -> dict:
    return make_user("admin@cafe.com", role="admin", name="Ada Admin")


@pytest.fixture
def employee(make_user) -> dict:
    return make_user("emma@cafe.com", role="employee", name="Emma Employee")


@pytest.fixture
def other_employee(make_user) -> dict:
    return make_user("oscar@cafe.com", role="employee", name="Oscar Employee")


@pytest.fixture
def add_menu_item(client, admin) -> Callable[..., dict]:
    """Create a menu item through the admin API and return it."""

    def _add(name: str, price: float, category: str = "drinks", **extra) -> dict:
        response = client.post(
            "/menu",
            json={"name": name, "category": category, "price": price, **extra},
            headers=admin["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["menuItem"]

    return _add


@pytest.fixture
def espresso(add_menu_item) -> dict:
    return add_menu_item("Espresso", 2.99, description="Rich and bold shot of espresso")


@pytest.fixture
def croissant(add_menu_item) -> dict:
    return add_menu_item("Croissant", 3.49, category="food", description="Buttery and flaky")
