"""
FastAPI dependencies for product routes.
"""

from __future__ import annotations

from fastapi import Request

from .service import ProductCatalogService


def get_catalog_service(request: Request) -> ProductCatalogService:
    return request.app.state.catalog
