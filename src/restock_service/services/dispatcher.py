"""Notification dispatch for claimed subscriptions.

Sends run concurrently under a semaphore so a large waitlist does not open
more connections than the mail transport allows. Every send is isolated:
whatever one recipient's send raises is recorded as that subscription's
failed outcome and never reaches the rest of the batch.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from email_worker.services import EmailSender
from email_worker.services.render import product_url, render_back_in_stock
from restock_service.errors import SendFailure
from restock_service.infrastructure.database.models import Subscription

logger = structlog.get_logger()


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Result of one notification attempt."""

    subscription_id: str
    claim_token: str | None
    status: DeliveryStatus
    reason: str | None = None

    @property
    def sent(self) -> bool:
        return self.status is DeliveryStatus.SENT


class NotificationDispatcher:
    """Sends one back-in-stock email per claimed subscription."""

    def __init__(
        self,
        sender: EmailSender,
        shop_domain: str,
        concurrency: int = 10,
        from_email: str = "noreply@example.com",
        from_name: str = "Back in Stock",
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.sender = sender
        self.shop_domain = shop_domain
        self.concurrency = concurrency
        self.from_email = from_email
        self.from_name = from_name

    async def dispatch(
        self, claimed: Sequence[Subscription]
    ) -> dict[str, DeliveryOutcome]:
        """
        Notify every claimed subscription.

        Args:
            claimed: Subscriptions this pass holds the claim on

        Returns:
            dict: Outcome per subscription id. Never raises for send errors.
        """
        if not claimed:
            return {}

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(subscription: Subscription) -> DeliveryOutcome:
            async with semaphore:
                return await self._send_one(subscription)

        outcomes = await asyncio.gather(*(_bounded(s) for s in claimed))
        results = {outcome.subscription_id: outcome for outcome in outcomes}

        sent = sum(1 for outcome in outcomes if outcome.sent)
        logger.info(
            "Dispatched restock notifications",
            attempted=len(outcomes),
            sent=sent,
            failed=len(outcomes) - sent,
        )
        return results

    async def _send_one(self, subscription: Subscription) -> DeliveryOutcome:
        try:
            url = product_url(self.shop_domain, subscription.product_id, subscription.variant_id)
            subject, html = render_back_in_stock(self.shop_domain, url)
            result = await self.sender.send_email(
                to_email=subscription.email,
                subject=subject,
                html_content=html,
                from_email=self.from_email,
                from_name=self.from_name,
                tracking_id=subscription.claim_token,
                metadata={"subscription_id": subscription.id},
            )
            if isinstance(result, dict) and result.get("success") is False:
                raise SendFailure(subscription.id, str(result.get("error") or "rejected by sender"))
        except Exception as e:
            logger.warning(
                "Restock notification failed",
                subscription_id=subscription.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryOutcome(
                subscription_id=subscription.id,
                claim_token=subscription.claim_token,
                status=DeliveryStatus.FAILED,
                reason=str(e) or type(e).__name__,
            )

        return DeliveryOutcome(
            subscription_id=subscription.id,
            claim_token=subscription.claim_token,
            status=DeliveryStatus.SENT,
        )
