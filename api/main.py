from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.db import Database
from core.errors import register_exception_handlers
from core.logging_config import configure_logging
from core.settings import Settings
from products.repository import ProductRepository
from products.router import router as products_router
from products.service import ProductCatalogService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Open the DB pool once per process.
    database: Database = app.state.database
    await database.connect()
    try:
        yield
    finally:
        await database.close()


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    database = database or Database.from_settings(settings)

    app = FastAPI(title="Product Catalog API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.catalog = ProductCatalogService(ProductRepository(database))

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(products_router, tags=["products"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/health/ready")
    async def ready(request: Request) -> JSONResponse:
        if await request.app.state.database.ping():
            return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready"})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready"},
        )

    @app.get("/")
    def root() -> dict:
        return {"message": "product catalog api"}

    return app


app = create_app()


if __name__ == "__main__":
    settings: Settings = app.state.settings
    logger.info("server_starting host=%s port=%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
