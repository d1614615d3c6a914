"""Waitlist intake endpoint."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from restock_service.api.dependencies import get_store
from restock_service.errors import StoreUnavailable
from restock_service.infrastructure.database.store import SubscriptionStore

logger = structlog.get_logger()

router = APIRouter()


class SubscribeRequest(BaseModel):
    """Request to join the waitlist for an out-of-stock item."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(..., description="Address to notify")
    product_id: str | None = Field(None, alias="productId")
    variant_id: str | None = Field(None, alias="variantId")
    inventory_item_id: str | None = Field(None, alias="inventoryItemId")

    @field_validator("product_id", "variant_id", "inventory_item_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> str | None:
        # Storefront scripts often send numeric ids
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int):
            return str(v)
        if isinstance(v, str):
            return v.strip() or None
        return v


class SubscribeResponse(BaseModel):
    """Response after recording a subscription."""

    id: str
    status: str
    created_at: str


@router.post("", response_model=SubscribeResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    payload: SubscribeRequest,
    store: SubscriptionStore = Depends(get_store),
) -> SubscribeResponse:
    """
    Add an email to the waitlist for a catalog item.

    At least one of `productId`, `variantId` or `inventoryItemId` is
    required. Subscribing twice creates two independent records; each is
    notified and retired on its own.
    """
    if not (payload.product_id or payload.variant_id or payload.inventory_item_id):
        raise HTTPException(
            status_code=400,
            detail="One of productId, variantId or inventoryItemId is required",
        )

    try:
        subscription = await store.create(
            email=str(payload.email),
            product_id=payload.product_id,
            variant_id=payload.variant_id,
            inventory_item_id=payload.inventory_item_id,
        )
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail="Subscription store unavailable") from e

    return SubscribeResponse(
        id=subscription.id,
        status=subscription.status.value,
        created_at=subscription.created_at.isoformat(),
    )
