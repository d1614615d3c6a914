"""Unit tests for outcome reconciliation."""

from datetime import timedelta

import pytest

from restock_service.errors import StoreUnavailable
from restock_service.infrastructure.database.models import SubscriptionStatus, utcnow
from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.services.dispatcher import DeliveryOutcome, DeliveryStatus
from restock_service.services.reconciler import ReconciliationSummary, Reconciler


class UnavailableStore:
    """Store stand-in whose writes fail for selected ids."""

    def __init__(self, broken: set[str]):
        self.broken = broken
        self.deleted: list[str] = []

    async def delete(self, subscription_id: str) -> bool:
        if subscription_id in self.broken:
            raise StoreUnavailable("connection reset")
        self.deleted.append(subscription_id)
        return True

    async def release(self, subscription_id: str, claim_token: str | None) -> bool:
        if subscription_id in self.broken:
            raise StoreUnavailable("connection reset")
        return True


async def _claimed(store: SubscriptionStore, email: str) -> tuple[str, str]:
    subscription = await store.create(email, inventory_item_id="77")
    now = utcnow()
    claimed = await store.try_claim(subscription.id, now, now - timedelta(minutes=5))
    return claimed.id, claimed.claim_token


class TestReconcile:
    @pytest.mark.asyncio
    async def test_sent_deleted_failed_reverted(self, store: SubscriptionStore) -> None:
        sent_id, sent_token = await _claimed(store, "a@x.com")
        failed_id, failed_token = await _claimed(store, "b@x.com")

        summary = await Reconciler(store).reconcile(
            {
                sent_id: DeliveryOutcome(sent_id, sent_token, DeliveryStatus.SENT),
                failed_id: DeliveryOutcome(
                    failed_id, failed_token, DeliveryStatus.FAILED, "bounced"
                ),
            }
        )

        assert summary.to_dict() == {
            "claimed": 0,
            "sent": 1,
            "failed": 1,
            "deleted": 1,
            "reverted": 1,
            "errors": 0,
        }
        assert await store.get(sent_id) is None

        reverted = await store.get(failed_id)
        assert reverted.status is SubscriptionStatus.PENDING
        assert reverted.claimed_at is None

    @pytest.mark.asyncio
    async def test_failed_with_lost_claim_not_reverted(self, store: SubscriptionStore) -> None:
        subscription_id, _ = await _claimed(store, "a@x.com")

        summary = await Reconciler(store).reconcile(
            {
                subscription_id: DeliveryOutcome(
                    subscription_id, "someone-elses-token", DeliveryStatus.FAILED, "timeout"
                )
            }
        )

        assert summary.failed == 1
        assert summary.reverted == 0
        assert (await store.get(subscription_id)).status is SubscriptionStatus.NOTIFYING

    @pytest.mark.asyncio
    async def test_store_error_counted_and_rest_applied(self) -> None:
        store = UnavailableStore(broken={"s-2"})
        outcomes = {
            f"s-{i}": DeliveryOutcome(f"s-{i}", f"t-{i}", DeliveryStatus.SENT)
            for i in (1, 2, 3)
        }

        summary = await Reconciler(store).reconcile(outcomes, ReconciliationSummary(claimed=3))

        assert summary.errors == 1
        assert summary.deleted == 2
        assert store.deleted == ["s-1", "s-3"]
