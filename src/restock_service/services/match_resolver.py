"""Resolve which waitlist subscriptions a restock event satisfies."""

from datetime import datetime, timedelta

import structlog

from restock_service.infrastructure.database.models import Subscription, utcnow
from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.services.normalizer import RestockEvent

logger = structlog.get_logger()


class MatchResolver:
    """Finds claimable subscriptions for an event using one identifier only."""

    def __init__(self, store: SubscriptionStore, claim_timeout: timedelta):
        self.store = store
        self.claim_timeout = claim_timeout

    async def resolve(
        self, event: RestockEvent, now: datetime | None = None
    ) -> list[Subscription]:
        """
        Return the subscriptions matching the event's highest-priority identifier.

        Subscriptions stuck in NOTIFYING past the claim timeout are included
        so a crashed pass does not strand them.
        """
        field, value = event.match_criterion()
        stale_before = (now or utcnow()) - self.claim_timeout
        matches = await self.store.find_claimable(field, value, stale_before)

        logger.info(
            "Resolved restock matches",
            match_field=field,
            match_value=value,
            matched=len(matches),
            dedupe_key=event.dedupe_key,
        )
        return matches
