"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from email_worker.services.mock_email_sender import MockEmailSender
from restock_service.api.dependencies import get_cache, get_engine, get_store
from restock_service.config import Settings, get_settings
from restock_service.infrastructure.database.connection import get_async_session_factory
from restock_service.infrastructure.database.models import Base
from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.infrastructure.redis import CacheService
from restock_service.main import create_app
from restock_service.services.authenticator import sign
from restock_service.services.engine import RestockEngine

WEBHOOK_SECRET = "test-webhook-secret"
SHOP_DOMAIN = "shop.example.com"


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Get test settings with overrides."""
    return Settings(
        app_env="test",
        debug=True,
        database_url_override=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        redis_enabled=False,
        shopify_webhook_secret=WEBHOOK_SECRET,
        shopify_shop_domain=SHOP_DOMAIN,
        claim_timeout_seconds=300,
        dispatch_concurrency=3,
    )


@pytest_asyncio.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database with the schema created."""
    engine = create_async_engine(test_settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(db_engine: AsyncEngine) -> SubscriptionStore:
    return SubscriptionStore(get_async_session_factory(db_engine))


@pytest.fixture
def mail_sender() -> MockEmailSender:
    return MockEmailSender()


@pytest.fixture
def restock_engine(store: SubscriptionStore, mail_sender: MockEmailSender) -> RestockEngine:
    return RestockEngine(
        store=store,
        sender=mail_sender,
        shop_domain=SHOP_DOMAIN,
        claim_timeout=timedelta(minutes=5),
        concurrency=3,
    )


@pytest.fixture
def cache() -> CacheService:
    """Dedupe cache without Redis (every event is treated as new)."""
    return CacheService(None)


@pytest.fixture
def app(
    test_settings: Settings,
    store: SubscriptionStore,
    restock_engine: RestockEngine,
    cache: CacheService,
) -> Any:
    """Create test application wired to the test store and mock sender."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_engine] = lambda: restock_engine
    app.dependency_overrides[get_cache] = lambda: cache
    return app


@pytest_asyncio.fixture
async def async_client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create asynchronous test client sharing the test event loop."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def signed_headers():
    """Build headers for a correctly signed inventory webhook."""

    def _build(body: bytes, secret: str = WEBHOOK_SECRET, **extra: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Hmac-Sha256": sign(body, secret),
            **extra,
        }

    return _build
