"""Close out a dispatch batch against the store."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass

import structlog

from restock_service.errors import StoreUnavailable
from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.services.dispatcher import DeliveryOutcome

logger = structlog.get_logger()


@dataclass(slots=True)
class ReconciliationSummary:
    """Counters for one restock pass."""

    claimed: int = 0
    sent: int = 0
    failed: int = 0
    deleted: int = 0
    reverted: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class Reconciler:
    """Deletes notified subscriptions and returns failed ones to PENDING."""

    def __init__(self, store: SubscriptionStore):
        self.store = store

    async def reconcile(
        self,
        outcomes: Mapping[str, DeliveryOutcome],
        summary: ReconciliationSummary | None = None,
    ) -> ReconciliationSummary:
        """
        Apply dispatch outcomes to the store.

        A store error on one subscription is logged and counted; that
        subscription stays NOTIFYING and is picked up again once its claim
        expires. The remaining outcomes are still applied.
        """
        summary = summary or ReconciliationSummary()

        for subscription_id, outcome in outcomes.items():
            try:
                if outcome.sent:
                    summary.sent += 1
                    if await self.store.delete(subscription_id):
                        summary.deleted += 1
                else:
                    summary.failed += 1
                    if await self.store.release(subscription_id, outcome.claim_token):
                        summary.reverted += 1
                    else:
                        logger.warning(
                            "Claim no longer held, not reverting",
                            subscription_id=subscription_id,
                        )
            except StoreUnavailable as e:
                summary.errors += 1
                logger.error(
                    "Reconciliation failed for subscription",
                    subscription_id=subscription_id,
                    outcome=outcome.status.value,
                    error=str(e),
                )

        logger.info("Reconciled restock batch", **summary.to_dict())
        return summary
