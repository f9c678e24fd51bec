"""
Product catalog API endpoints.

Inputs are accepted untyped here and validated by the service, so every
client error uses the same `{message, errors}` response shape.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from . import schemas
from .dependencies import get_catalog_service
from .service import ProductCatalogService

router = APIRouter(prefix="/api/products")


@router.get("", response_model=schemas.ProductListResponse)
async def list_products(
    request: Request,
    catalog: ProductCatalogService = Depends(get_catalog_service),
) -> schemas.ProductListResponse:
    """
    List products, newest first. Filters: name (substring), minPrice, maxPrice.
    """
    return await catalog.list_products(request.query_params)


@router.get("/{product_id}", response_model=schemas.Product)
async def get_product(
    product_id: str,
    catalog: ProductCatalogService = Depends(get_catalog_service),
) -> schemas.Product:
    return await catalog.get_product(product_id)


@router.post("", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: Any = Body(default=None),
    catalog: ProductCatalogService = Depends(get_catalog_service),
) -> schemas.Product:
    return await catalog.create_product(payload)


@router.put("/{product_id}", response_model=schemas.Product)
async def update_product(
    product_id: str,
    payload: Any = Body(default=None),
    catalog: ProductCatalogService = Depends(get_catalog_service),
) -> schemas.Product:
    """
    Partial update: fields left out of the body keep their stored value.
    """
    return await catalog.update_product(product_id, payload)


@router.delete("/{product_id}", response_model=schemas.Product)
async def delete_product(
    product_id: str,
    catalog: ProductCatalogService = Depends(get_catalog_service),
) -> schemas.Product:
    """
    Hard-delete a product and return its last stored state.
    """
    return await catalog.delete_product(product_id)
