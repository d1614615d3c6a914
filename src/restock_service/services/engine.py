"""Restock reconciliation engine.

Ties the pipeline together for one normalized event:

    resolve -> claim -> dispatch -> reconcile

``claim_batch`` and ``deliver`` are split so the webhook can take its claims
before acknowledging and send afterwards in the background.
"""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import timedelta

import structlog

from email_worker.services import EmailSender, close_email_sender, get_email_sender
from restock_service.config import Settings
from restock_service.infrastructure.database.connection import (
    get_async_engine,
    get_async_session_factory,
)
from restock_service.infrastructure.database.models import Subscription, utcnow
from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.services.claim_coordinator import ClaimCoordinator
from restock_service.services.dispatcher import NotificationDispatcher
from restock_service.services.match_resolver import MatchResolver
from restock_service.services.normalizer import RestockEvent
from restock_service.services.reconciler import ReconciliationSummary, Reconciler

logger = structlog.get_logger()


class RestockEngine:
    """Runs restock events through the claim-based notification pipeline."""

    def __init__(
        self,
        store: SubscriptionStore,
        sender: EmailSender,
        shop_domain: str,
        claim_timeout: timedelta = timedelta(minutes=5),
        concurrency: int = 10,
        from_email: str = "noreply@example.com",
        from_name: str = "Back in Stock",
    ):
        self.store = store
        self.claim_timeout = claim_timeout
        self.resolver = MatchResolver(store, claim_timeout)
        self.coordinator = ClaimCoordinator(store, claim_timeout)
        self.dispatcher = NotificationDispatcher(
            sender,
            shop_domain=shop_domain,
            concurrency=concurrency,
            from_email=from_email,
            from_name=from_name,
        )
        self.reconciler = Reconciler(store)

    async def claim_batch(self, event: RestockEvent) -> list[Subscription]:
        """Resolve and claim the subscriptions ``event`` satisfies.

        Events without available stock do not touch the store.
        """
        log = logger.bind(dedupe_key=event.dedupe_key, topic=event.topic)
        if not event.is_actionable:
            log.info(
                "Restock event not actionable",
                available_quantity=event.available_quantity,
                **event.identifiers,
            )
            return []

        matches = await self.resolver.resolve(event)
        if not matches:
            return []
        return await self.coordinator.claim(s.id for s in matches)

    async def deliver(
        self,
        claimed: Sequence[Subscription],
        summary: ReconciliationSummary | None = None,
    ) -> ReconciliationSummary:
        """Send to every claimed subscription, then reconcile the outcomes."""
        summary = summary or ReconciliationSummary(claimed=len(claimed))
        if not claimed:
            return summary
        outcomes = await self.dispatcher.dispatch(claimed)
        return await self.reconciler.reconcile(outcomes, summary)

    async def process(self, event: RestockEvent) -> ReconciliationSummary:
        """Run the whole pipeline for one event."""
        claimed = await self.claim_batch(event)
        summary = ReconciliationSummary(claimed=len(claimed))
        return await self.deliver(claimed, summary)

    async def release_expired_claims(self) -> int:
        """Return subscriptions stuck in NOTIFYING past the timeout to PENDING."""
        released = await self.store.release_expired(utcnow() - self.claim_timeout)
        if released:
            logger.warning("Released stale claims", released=released)
        return released


def build_engine(
    settings: Settings, store: SubscriptionStore, sender: EmailSender
) -> RestockEngine:
    """Wire a RestockEngine from settings and injected capabilities."""
    return RestockEngine(
        store=store,
        sender=sender,
        shop_domain=settings.shopify_shop_domain,
        claim_timeout=timedelta(seconds=settings.claim_timeout_seconds),
        concurrency=settings.dispatch_concurrency,
        from_email=settings.email_from_address,
        from_name=settings.email_from_name,
    )


@asynccontextmanager
async def engine_scope(settings: Settings) -> AsyncIterator[RestockEngine]:
    """Acquire a database engine and mail sender for the lifetime of the block."""
    db_engine = get_async_engine(settings)
    sender = get_email_sender(settings)
    try:
        store = SubscriptionStore(get_async_session_factory(db_engine))
        yield build_engine(settings, store, sender)
    finally:
        await close_email_sender(sender)
        await db_engine.dispose()
