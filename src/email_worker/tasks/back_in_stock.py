"""Back in stock notification tasks."""

import asyncio
from uuid import uuid4

import structlog
from celery import shared_task

from restock_service.config import get_settings
from restock_service.errors import MalformedEvent, StoreUnavailable
from restock_service.services.engine import engine_scope
from restock_service.services.normalizer import RestockEvent

logger = structlog.get_logger()


async def _notify(event: RestockEvent) -> dict:
    async with engine_scope(get_settings()) as engine:
        summary = await engine.process(event)
    return summary.to_dict()


async def _release() -> int:
    async with engine_scope(get_settings()) as engine:
        return await engine.release_expired_claims()


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_back_in_stock(
    self,
    available_quantity: int,
    inventory_item_id: str | None = None,
    variant_id: str | None = None,
    product_id: str | None = None,
) -> dict:
    """
    Notify waitlisted shoppers that an item is back in stock.

    Runs the same claim, dispatch and reconcile pipeline as the inventory
    webhook, for callers that learn about stock changes some other way
    (catalog sync jobs, manual replays).

    Args:
        available_quantity: Units now available; nothing happens unless > 0
        inventory_item_id: Inventory item that changed
        variant_id: Variant that changed
        product_id: Product that changed

    Returns:
        dict: Summary of notifications sent
    """
    event = RestockEvent(
        available_quantity=int(available_quantity),
        dedupe_key=f"task:{self.request.id or uuid4()}",
        inventory_item_id=str(inventory_item_id) if inventory_item_id else None,
        variant_id=str(variant_id) if variant_id else None,
        product_id=str(product_id) if product_id else None,
    )
    logger.info("Processing back in stock notification", **event.identifiers)

    try:
        event.match_criterion()
    except MalformedEvent as e:
        logger.warning("Back in stock task without identifiers", error=str(e))
        return {"status": "rejected", "reason": str(e)}

    try:
        summary = asyncio.run(_notify(event))
    except StoreUnavailable as e:
        raise self.retry(exc=e)

    return {"status": "processed", **summary}


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def release_stale_claims(self) -> dict:
    """
    Return subscriptions stuck in NOTIFYING past the claim timeout to PENDING.

    A pass that crashes between claiming and reconciling leaves its claims
    behind; this makes them eligible for the next restock event.
    """
    try:
        released = asyncio.run(_release())
    except StoreUnavailable as e:
        raise self.retry(exc=e)

    return {"released": released}
