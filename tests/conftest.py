# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import MemoryDatabase
from app.main import create_app

TOKENS = {
    "admin-token": "admin1:admin",
    "alice-token": "alice:user",
    "bob-token": "bob:user",
}


def bearer(token: str):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_backend="memory",
        api_tokens=TOKENS,
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://testserver",
    )


@pytest.fixture
def db():
    return MemoryDatabase()


@pytest.fixture
def client(settings, db):
    return TestClient(create_app(settings=settings, database=db))


@pytest.fixture
def admin_headers():
    return bearer("admin-token")


@pytest.fixture
def alice_headers():
    return bearer("alice-token")


@pytest.fixture
def bob_headers():
    return bearer("bob-token")


@pytest.fixture
def make_product(client, admin_headers):
    def _make(**overrides):
        payload = {
            "name": "Desk Lamp",
            "description": "LED lamp with adjustable arm",
            "price": 30,
            "category": "Home & Garden",
            "stock": 5,
        }
        payload.update(overrides)
        r = client.post("/products", json=payload, headers=admin_headers)
        assert r.status_code == 201, r.json()
        return r.json()["data"]["product"]
    return _make
