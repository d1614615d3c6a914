"""Inventory webhook ingestion endpoint."""

from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from pydantic import BaseModel

from restock_service.api.dependencies import get_cache, get_engine
from restock_service.config import Settings, get_settings
from restock_service.errors import AuthenticationFailure, MalformedEvent, StoreUnavailable
from restock_service.infrastructure.redis import CacheService
from restock_service.services.authenticator import require_authentic
from restock_service.services.engine import RestockEngine
from restock_service.services.normalizer import normalize

logger = structlog.get_logger()

router = APIRouter()


class WebhookAck(BaseModel):
    """Acknowledgment returned to the webhook sender."""

    status: str
    claimed: int = 0


@router.post("/inventory", response_model=WebhookAck)
async def receive_inventory_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_shopify_hmac_sha256: Annotated[str | None, Header()] = None,
    x_shopify_webhook_id: Annotated[str | None, Header()] = None,
    x_shopify_topic: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
    engine: RestockEngine = Depends(get_engine),
    cache: CacheService = Depends(get_cache),
) -> WebhookAck:
    """
    Receive an inventory change and notify waitlisted shoppers.

    The body is read as raw bytes and verified before anything parses it.
    Matching subscriptions are claimed before the response is sent; emails
    go out in the background afterwards.

    **Responses:**
    - `401`: signature missing or invalid, nothing else is done
    - `400`: authenticated body is not a usable inventory payload
    - `503`: subscription store unavailable, safe for the sender to retry
    - `200`: accepted, ignored (no stock) or duplicate
    """
    raw_body = await request.body()

    try:
        require_authentic(raw_body, x_shopify_hmac_sha256, settings.shopify_webhook_secret)
    except AuthenticationFailure as e:
        logger.warning("Rejected inventory webhook", reason=str(e), topic=x_shopify_topic)
        raise HTTPException(status_code=401, detail="Invalid webhook signature") from e

    try:
        event = normalize(raw_body, event_id=x_shopify_webhook_id, topic=x_shopify_topic)
    except MalformedEvent as e:
        logger.warning("Malformed inventory webhook", error=str(e), topic=x_shopify_topic)
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info(
        "Inventory webhook received",
        dedupe_key=event.dedupe_key,
        available_quantity=event.available_quantity,
        **event.identifiers,
    )

    if not event.is_actionable:
        return WebhookAck(status="ignored")

    if not await cache.add_if_absent(event.dedupe_key, settings.dedupe_ttl_seconds):
        logger.info("Duplicate inventory webhook", dedupe_key=event.dedupe_key)
        return WebhookAck(status="duplicate")

    try:
        claimed = await engine.claim_batch(event)
    except StoreUnavailable as e:
        await cache.forget(event.dedupe_key)
        raise HTTPException(status_code=503, detail="Subscription store unavailable") from e

    if claimed:
        background_tasks.add_task(engine.deliver, claimed)

    return WebhookAck(status="accepted", claimed=len(claimed))
