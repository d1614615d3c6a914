"""Exclusive claiming of matched subscriptions.

Two passes racing on the same subscription (a retried webhook and the
original, or two overlapping events) each issue a conditional update; the
store guarantees only one of them sees a changed row. The loser drops that
subscription from its batch and carries on with the rest.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

import structlog

from restock_service.errors import ClaimConflict, StoreUnavailable
from restock_service.infrastructure.database.models import Subscription, utcnow
from restock_service.infrastructure.database.store import SubscriptionStore

logger = structlog.get_logger()


class ClaimCoordinator:
    """Moves subscriptions from PENDING to NOTIFYING, one row at a time."""

    def __init__(self, store: SubscriptionStore, claim_timeout: timedelta):
        self.store = store
        self.claim_timeout = claim_timeout

    async def claim(
        self, subscription_ids: Iterable[str], now: datetime | None = None
    ) -> list[Subscription]:
        """
        Claim as many of ``subscription_ids`` as possible.

        Args:
            subscription_ids: Candidates from the match resolver
            now: Claim timestamp, defaults to the current UTC time

        Returns:
            list: Subscriptions this pass now exclusively holds

        Raises:
            StoreUnavailable: The store went away mid-batch. Claims already
                taken are released before the error propagates, so a retry
                of the same event can claim them again.
        """
        now = now or utcnow()
        stale_before = now - self.claim_timeout

        claimed: list[Subscription] = []
        conflicts = 0
        try:
            for subscription_id in dict.fromkeys(subscription_ids):
                try:
                    subscription = await self.store.try_claim(
                        subscription_id, now, stale_before
                    )
                except ClaimConflict:
                    conflicts += 1
                    logger.debug("Claim conflict, skipping", subscription_id=subscription_id)
                    continue
                claimed.append(subscription)
        except StoreUnavailable:
            await self._release_partial(claimed)
            raise

        logger.info("Claimed subscriptions", claimed=len(claimed), conflicts=conflicts)
        return claimed

    async def _release_partial(self, claimed: list[Subscription]) -> None:
        """Best-effort revert of claims taken before the store failed."""
        released = 0
        for subscription in claimed:
            try:
                if await self.store.release(subscription.id, subscription.claim_token):
                    released += 1
            except StoreUnavailable as e:
                logger.warning(
                    "Could not release partial claim",
                    subscription_id=subscription.id,
                    error=str(e),
                )
        logger.warning(
            "Claim batch aborted, store unavailable",
            taken=len(claimed),
            released=released,
        )
