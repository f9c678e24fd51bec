"""Tests for ProductRepository SQL against a recording fake database."""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from core.errors import StorageError
from products.repository import ProductRepository
from products.schemas import ProductCreate, ProductListQuery, ProductUpdate


@pytest.mark.asyncio
async def test_list_page_uses_same_filters_for_count_and_page(fake_db):
    fake_db.queue("fetch_val", 25)
    fake_db.queue("fetch_all", [{"id": uuid4()}])
    repo = ProductRepository(fake_db)

    rows, total = await repo.list_page(ProductListQuery(name="lamp", minPrice="5", page="2", limit="10"))

    assert total == 25
    assert len(rows) == 1
    calls = {method: (sql, args) for method, sql, args in fake_db.calls}
    count_sql, count_args = calls["fetch_val"]
    page_sql, page_args = calls["fetch_all"]
    assert count_sql == "SELECT COUNT(*) FROM products WHERE name ILIKE $1 AND price >= $2"
    assert count_args == ("%lamp%", Decimal("5"))
    assert "WHERE name ILIKE $1 AND price >= $2" in page_sql
    assert page_args == ("%lamp%", Decimal("5"), 10, 10)


@pytest.mark.asyncio
async def test_list_page_runs_count_and_page_concurrently():
    page_started = asyncio.Event()
    count_started = asyncio.Event()

    class InterleavingDatabase:
        async def fetch_val(self, sql, *args):
            count_started.set()
            await page_started.wait()
            return 0

        async def fetch_all(self, sql, *args):
            page_started.set()
            await count_started.wait()
            return []

    repo = ProductRepository(InterleavingDatabase())

    rows, total = await asyncio.wait_for(repo.list_page(ProductListQuery()), timeout=1)

    assert (rows, total) == ([], 0)


@pytest.mark.asyncio
async def test_list_page_treats_null_count_as_zero(fake_db):
    fake_db.queue("fetch_val", None)

    rows, total = await ProductRepository(fake_db).list_page(ProductListQuery())

    assert (rows, total) == ([], 0)


@pytest.mark.asyncio
async def test_get_by_primary_key(fake_db):
    product_id = uuid4()

    row = await ProductRepository(fake_db).get(product_id)

    assert row is None
    method, sql, args = fake_db.calls[0]
    assert method == "fetch_one"
    assert sql.endswith("FROM products WHERE id = $1")
    assert args == (product_id,)


@pytest.mark.asyncio
async def test_create_stores_null_image_and_decimal_price(fake_db):
    fake_db.queue("fetch_one", {"id": uuid4(), "name": "Mug"})
    data = ProductCreate(name="Mug", price=0.1, quantity=2, image="")

    await ProductRepository(fake_db).create(data)

    _, sql, args = fake_db.calls[0]
    assert sql.startswith("INSERT INTO products (name, price, quantity, image) VALUES ($1, $2, $3, $4) RETURNING")
    assert args == ("Mug", Decimal("0.1"), 2, None)


@pytest.mark.asyncio
async def test_create_without_returned_row_is_storage_error(fake_db):
    with pytest.raises(StorageError):
        await ProductRepository(fake_db).create(ProductCreate(name="Mug", price=1, quantity=1))


@pytest.mark.asyncio
async def test_update_passes_nulls_for_absent_fields(fake_db):
    product_id = uuid4()

    await ProductRepository(fake_db).update(product_id, ProductUpdate(price=12.25))

    _, sql, args = fake_db.calls[0]
    assert "name = COALESCE($1, name)" in sql
    assert "image = COALESCE($4, image)" in sql
    assert "updated_at = now()" in sql
    assert sql.endswith(
        "WHERE id = $5 RETURNING id, name, price, quantity, image, created_at, updated_at"
    )
    assert args == (None, Decimal("12.25"), None, None, product_id)


@pytest.mark.asyncio
async def test_delete_returns_prior_row(fake_db):
    product_id = uuid4()
    fake_db.queue("fetch_one", {"id": product_id, "name": "Mug"})

    row = await ProductRepository(fake_db).delete(product_id)

    assert row == {"id": product_id, "name": "Mug"}
    _, sql, args = fake_db.calls[0]
    assert sql.startswith("DELETE FROM products WHERE id = $1 RETURNING")
    assert args == (product_id,)


@pytest.mark.asyncio
async def test_failed_count_cancels_page_query():
    page_started = asyncio.Event()
    page_cancelled = []

    class FailingCountDatabase:
        async def fetch_val(self, sql, *args):
            await page_started.wait()
            raise StorageError("Query failed.")

        async def fetch_all(self, sql, *args):
            page_started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                page_cancelled.append(True)
                raise

    repo = ProductRepository(FailingCountDatabase())

    with pytest.raises(StorageError):
        await asyncio.wait_for(repo.list_page(ProductListQuery()), timeout=1)
    assert page_cancelled == [True]
