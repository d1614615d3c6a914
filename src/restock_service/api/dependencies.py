"""FastAPI dependencies for the capabilities built in the app lifespan."""

from fastapi import Request

from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.infrastructure.redis import CacheService
from restock_service.services.engine import RestockEngine


def get_store(request: Request) -> SubscriptionStore:
    return request.app.state.store


def get_engine(request: Request) -> RestockEngine:
    return request.app.state.engine


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache
