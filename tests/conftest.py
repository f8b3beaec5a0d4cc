from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from database import PRODUCTS, ensure_indexes, get_db
from main import app

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "password123"

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret",
        admin_emails=[ADMIN_EMAIL],
        bcrypt_rounds=4,
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient()["storefront_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db, settings):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client: TestClient, email: str, password: str = PASSWORD):
    return client.post("/api/auth/register", json={"email": email, "password": password})


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client) -> str:
    res = register(client, ADMIN_EMAIL)
    assert res.status_code == 201, res.text
    return res.json()["data"]["token"]


@pytest.fixture
def user_token(client) -> str:
    res = register(client, "shopper@example.com")
    assert res.status_code == 201, res.text
    return res.json()["data"]["token"]


@pytest.fixture
def make_product(db):
    """Insert a product straight into the store, each one created a minute after the last."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        created = BASE_TIME + timedelta(minutes=counter["n"])
        doc = {
            "name": f"Product {counter['n']}",
            "description": "A thing for sale",
            "category": "electronics",
            "price": 10.0,
            "rating": 0.0,
            "image": "https://example.com/p.jpg",
            "stock": 5,
            "num_reviews": 0,
            "user": None,
            "created_at": created,
            "updated_at": created,
        }
        doc.update(overrides)
        result = db[PRODUCTS].insert_one(doc)
        return str(result.inserted_id)

    return _make
