"""Tests for the waitlist intake endpoint."""

import pytest
from httpx import AsyncClient

from restock_service.api.dependencies import get_store
from restock_service.errors import StoreUnavailable
from restock_service.infrastructure.database.models import SubscriptionStatus
from restock_service.infrastructure.database.store import SubscriptionStore

SUBSCRIBE_URL = "/api/v1/subscriptions"


class DownStore:
    async def create(self, **kwargs):
        raise StoreUnavailable("database is down")


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_creates_pending_subscription(
        self, async_client: AsyncClient, store: SubscriptionStore
    ) -> None:
        response = await async_client.post(
            SUBSCRIBE_URL,
            json={"email": "Shopper@Example.com", "productId": 300, "variantId": "4001"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["created_at"]

        subscription = await store.get(data["id"])
        assert subscription.email == "shopper@example.com"
        assert subscription.product_id == "300"
        assert subscription.variant_id == "4001"
        assert subscription.inventory_item_id is None
        assert subscription.status is SubscriptionStatus.PENDING

    @pytest.mark.asyncio
    async def test_accepts_snake_case_fields(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            SUBSCRIBE_URL, json={"email": "a@example.com", "inventory_item_id": "77"}
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_duplicate_subscribe_creates_second_record(
        self, async_client: AsyncClient
    ) -> None:
        payload = {"email": "a@example.com", "variantId": "5"}
        first = await async_client.post(SUBSCRIBE_URL, json=payload)
        second = await async_client.post(SUBSCRIBE_URL, json=payload)

        assert first.status_code == second.status_code == 201
        assert first.json()["id"] != second.json()["id"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "a@example.com"},
            {"email": "a@example.com", "productId": ""},
            {"email": "a@example.com", "variantId": None},
        ],
    )
    async def test_identifier_required(self, async_client: AsyncClient, payload: dict) -> None:
        response = await async_client.post(SUBSCRIBE_URL, json=payload)
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"productId": "300"},
            {"email": "not-an-email", "productId": "300"},
        ],
    )
    async def test_email_validated(self, async_client: AsyncClient, payload: dict) -> None:
        response = await async_client.post(SUBSCRIBE_URL, json=payload)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_store_unavailable(self, app, async_client: AsyncClient) -> None:
        app.dependency_overrides[get_store] = lambda: DownStore()
        response = await async_client.post(
            SUBSCRIBE_URL, json={"email": "a@example.com", "productId": "300"}
        )
        assert response.status_code == 503
