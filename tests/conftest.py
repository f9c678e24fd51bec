import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from core.settings import Settings
from main import create_app
from products.dependencies import get_catalog_service
from products.service import ProductCatalogService


class RecordingDatabase:
    """
    Stand-in for core.db.Database.

    Records every (method, normalized sql, args) call and returns queued
    results per method, falling back to an empty result.
    """

    _empty = {"fetch_one": None, "fetch_all": [], "fetch_val": 0}

    def __init__(self):
        self.calls = []
        self.results = {method: [] for method in self._empty}
        self.connected = False
        self.healthy = True

    async def connect(self):
        self.connected = True

    async def close(self):
        self.connected = False

    async def ping(self):
        return self.healthy

    def queue(self, method, value):
        self.results[method].append(value)

    def _call(self, method, sql, args):
        self.calls.append((method, " ".join(sql.split()), args))
        queued = self.results[method]
        return queued.pop(0) if queued else self._empty[method]

    async def fetch_one(self, sql, *args):
        return self._call("fetch_one", sql, args)

    async def fetch_all(self, sql, *args):
        return self._call("fetch_all", sql, args)

    async def fetch_val(self, sql, *args):
        return self._call("fetch_val", sql, args)


class InMemoryProductRepository:
    """Dict-backed ProductRepository with the same row semantics as the SQL one."""

    _epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __init__(self):
        self.rows = {}
        self._ticks = itertools.count(1)

    def _now(self):
        return self._epoch + timedelta(milliseconds=next(self._ticks))

    async def list_page(self, filters):
        rows = list(self.rows.values())
        if filters.name:
            needle = filters.name.casefold()
            rows = [r for r in rows if needle in r["name"].casefold()]
        if filters.min_price is not None:
            rows = [r for r in rows if r["price"] >= Decimal(str(filters.min_price))]
        if filters.max_price is not None:
            rows = [r for r in rows if r["price"] <= Decimal(str(filters.max_price))]
        rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
        start = (filters.page - 1) * filters.limit
        return [dict(r) for r in rows[start:start + filters.limit]], len(rows)

    async def get(self, product_id):
        row = self.rows.get(product_id)
        return dict(row) if row is not None else None

    async def create(self, data):
        now = self._now()
        row = {
            "id": uuid4(),
            "name": data.name,
            "price": Decimal(str(data.price)),
            "quantity": data.quantity,
            "image": data.image or None,
            "created_at": now,
            "updated_at": now,
        }
        self.rows[row["id"]] = row
        return dict(row)

    async def update(self, product_id, data):
        row = self.rows.get(product_id)
        if row is None:
            return None
        for field, value in data.changes().items():
            row[field] = Decimal(str(value)) if field == "price" else value
        row["updated_at"] = self._now()
        return dict(row)

    async def delete(self, product_id):
        row = self.rows.pop(product_id, None)
        return dict(row) if row is not None else None


@pytest.fixture
def settings():
    return Settings(database_url="postgresql://catalog@localhost:5432/catalog_test")


@pytest.fixture
def fake_db():
    return RecordingDatabase()


@pytest.fixture
def repository():
    return InMemoryProductRepository()


@pytest.fixture
def app(settings, fake_db, repository):
    application = create_app(settings=settings, database=fake_db)
    application.dependency_overrides[get_catalog_service] = lambda: ProductCatalogService(repository)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Test client running the app lifespan against the fake database."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_product(client):
    def _make(**overrides):
        payload = {"name": "Desk Lamp", "price": 24.5, "quantity": 3}
        payload.update(overrides)
        response = client.post("/api/products", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
