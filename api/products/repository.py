"""
Product persistence (raw SQL).

Every statement touches at most one row except the list queries, so no
explicit transactions are needed.
"""

from __future__ import annotations

import asyncio
from typing import Any
from uuid import UUID

from core.db import Database
from core.errors import StorageError

from .query import PRODUCT_COLUMNS, ProductQuery, to_decimal
from .schemas import ProductCreate, ProductListQuery, ProductUpdate


class ProductRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_page(self, filters: ProductListQuery) -> tuple[list[dict[str, Any]], int]:
        """
        Return (rows for the requested page, total rows matching the filters).

        The count and page queries run concurrently on separate pool connections;
        if either fails the other is cancelled and the first failure is raised.
        """
        query = ProductQuery.from_filters(filters)
        count = query.count_statement()
        page = query.page_statement(page=filters.page, limit=filters.limit)
        try:
            async with asyncio.TaskGroup() as tg:
                count_task = tg.create_task(self._db.fetch_val(count.sql, *count.params))
                page_task = tg.create_task(self._db.fetch_all(page.sql, *page.params))
        except ExceptionGroup as group:
            raise group.exceptions[0]
        return page_task.result(), int(count_task.result() or 0)

    async def get(self, product_id: UUID) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"""
            SELECT {PRODUCT_COLUMNS}
            FROM products
            WHERE id = $1
            """,
            product_id,
        )

    async def create(self, data: ProductCreate) -> dict[str, Any]:
        row = await self._db.fetch_one(
            f"""
            INSERT INTO products (name, price, quantity, image)
            VALUES ($1, $2, $3, $4)
            RETURNING {PRODUCT_COLUMNS}
            """,
            data.name,
            to_decimal(data.price),
            data.quantity,
            data.image or None,
        )
        if row is None:
            raise StorageError("Failed to create product.")
        return row

    async def update(self, product_id: UUID, data: ProductUpdate) -> dict[str, Any] | None:
        """
        Apply a partial update. NULL parameters keep the stored value.
        """
        return await self._db.fetch_one(
            f"""
            UPDATE products
            SET name = COALESCE($1, name),
                price = COALESCE($2, price),
                quantity = COALESCE($3, quantity),
                image = COALESCE($4, image),
                updated_at = now()
            WHERE id = $5
            RETURNING {PRODUCT_COLUMNS}
            """,
            data.name,
            to_decimal(data.price) if data.price is not None else None,
            data.quantity,
            data.image,
            product_id,
        )

    async def delete(self, product_id: UUID) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"""
            DELETE FROM products
            WHERE id = $1
            RETURNING {PRODUCT_COLUMNS}
            """,
            product_id,
        )
