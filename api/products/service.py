"""
Product catalog business logic.

Scope:
- validate raw request input before any storage call
- translate repository rows into response schemas
- map missing rows to NotFoundError
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from core.errors import NotFoundError, RequestValidationFailed

from . import validation
from .repository import ProductRepository
from .schemas import Pagination, Product, ProductListResponse

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Product not found"


def build_pagination(*, total: int, page: int, limit: int) -> Pagination:
    total_pages = math.ceil(total / limit)
    return Pagination(
        total_products=total,
        total_pages=total_pages,
        current_page=page,
        page_size=limit,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def _to_product(row: Mapping[str, Any]) -> Product:
    return Product.model_validate(dict(row))


class ProductCatalogService:
    def __init__(self, repository: ProductRepository) -> None:
        self._repository = repository

    def _product_id(self, raw_id: Any) -> UUID:
        result = validation.validate_path({"id": raw_id})
        if not result.ok:
            raise RequestValidationFailed("Invalid URL parameters", result.errors)
        return result.value.id

    async def list_products(self, query_params: Mapping[str, Any]) -> ProductListResponse:
        result = validation.validate_list_query(query_params)
        if not result.ok:
            raise RequestValidationFailed("Invalid query parameters", result.errors)

        filters = result.value
        rows, total = await self._repository.list_page(filters)
        return ProductListResponse(
            products=[_to_product(row) for row in rows],
            pagination=build_pagination(total=total, page=filters.page, limit=filters.limit),
        )

    async def get_product(self, raw_id: Any) -> Product:
        product_id = self._product_id(raw_id)
        row = await self._repository.get(product_id)
        if row is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return _to_product(row)

    async def create_product(self, body: Any) -> Product:
        result = validation.validate_create(body)
        if not result.ok:
            raise RequestValidationFailed("Invalid request body", result.errors)

        row = await self._repository.create(result.value)
        product = _to_product(row)
        logger.info("product_created id=%s", product.id)
        return product

    async def update_product(self, raw_id: Any, body: Any) -> Product:
        product_id = self._product_id(raw_id)
        result = validation.validate_update(body)
        if not result.ok:
            raise RequestValidationFailed("Invalid request body", result.errors)

        # An empty change set is allowed: only updated_at moves.
        changes = result.value.changes()
        row = await self._repository.update(product_id, result.value)
        if row is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("product_updated id=%s fields=%s", product_id, ",".join(sorted(changes)) or "-")
        return _to_product(row)

    async def delete_product(self, raw_id: Any) -> Product:
        product_id = self._product_id(raw_id)
        row = await self._repository.delete(product_id)
        if row is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("product_deleted id=%s", product_id)
        return _to_product(row)
