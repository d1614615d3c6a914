"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restock_service import __version__
from restock_service.api.v1.router import api_router
from restock_service.config import get_settings
from restock_service.infrastructure.redis import CacheService, create_redis_client
from restock_service.logging_config import configure_logging
from restock_service.middleware.request_context import RequestContextMiddleware
from restock_service.services.engine import engine_scope

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Acquire the store, mail sender and cache; release them on shutdown."""
    settings = get_settings()
    logger.info(
        "Starting Restock Notifier",
        app_env=settings.app_env,
        debug=settings.debug,
        email_service=settings.email_service,
    )
    if not settings.shopify_webhook_secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET is not set; every webhook will be rejected")

    cache = CacheService(await create_redis_client(settings))
    async with engine_scope(settings) as engine:
        app.state.engine = engine
        app.state.store = engine.store
        app.state.cache = cache
        try:
            yield
        finally:
            await cache.close()
    logger.info("Shutting down Restock Notifier")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Restock Notifier API",
        description="Back-in-stock waitlist and inventory webhook processing",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=["Content-Type"],
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "restock_service.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.api_workers,
    )


if __name__ == "__main__":
    run()
