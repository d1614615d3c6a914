"""Subscription store backed by SQLAlchemy.

Every public method runs in its own short transaction. The conditional
update in ``try_claim`` is the only write-serialization mechanism between
concurrent restock passes.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy import and_, delete, or_, select, text, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from restock_service.errors import ClaimConflict, StoreUnavailable
from restock_service.infrastructure.database.models import (
    MATCHABLE_FIELDS,
    Subscription,
    SubscriptionStatus,
    utcnow,
)

logger = structlog.get_logger()


def claimable(stale_before: datetime) -> ColumnElement[bool]:
    """Pending, or notifying under a claim older than ``stale_before``."""
    return or_(
        Subscription.status == SubscriptionStatus.PENDING,
        and_(
            Subscription.status == SubscriptionStatus.NOTIFYING,
            Subscription.claimed_at < stale_before,
        ),
    )


class SubscriptionStore:
    """Persistence operations for waitlist subscriptions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session, session.begin():
                yield session
        except (OperationalError, InterfaceError, OSError) as e:
            logger.error("Subscription store unavailable", error=str(e))
            raise StoreUnavailable(str(e)) from e

    async def create(
        self,
        email: str,
        product_id: str | None = None,
        variant_id: str | None = None,
        inventory_item_id: str | None = None,
    ) -> Subscription:
        """Persist a new pending subscription."""
        if not (product_id or variant_id or inventory_item_id):
            raise ValueError("At least one catalog identifier is required")

        subscription = Subscription(
            id=str(uuid4()),
            email=email.strip().lower(),
            product_id=product_id,
            variant_id=variant_id,
            inventory_item_id=inventory_item_id,
            status=SubscriptionStatus.PENDING,
            created_at=utcnow(),
        )
        async with self._transaction() as session:
            session.add(subscription)
        logger.info(
            "Subscription created",
            subscription_id=subscription.id,
            product_id=product_id,
            variant_id=variant_id,
            inventory_item_id=inventory_item_id,
        )
        return subscription

    async def get(self, subscription_id: str) -> Subscription | None:
        async with self._transaction() as session:
            return await session.get(Subscription, subscription_id)

    async def find_claimable(
        self, field: str, value: str, stale_before: datetime
    ) -> list[Subscription]:
        """Subscriptions whose ``field`` equals ``value`` and that may be claimed."""
        if field not in MATCHABLE_FIELDS:
            raise ValueError(f"Cannot match on {field!r}")

        column = getattr(Subscription, field)
        query = (
            select(Subscription)
            .where(column == value, claimable(stale_before))
            .order_by(Subscription.created_at, Subscription.id)
        )
        async with self._transaction() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def try_claim(
        self, subscription_id: str, now: datetime, stale_before: datetime
    ) -> Subscription:
        """Atomically move one subscription to NOTIFYING.

        Raises ClaimConflict when another pass holds it or it no longer exists.
        """
        token = str(uuid4())
        claim = (
            update(Subscription)
            .where(Subscription.id == subscription_id, claimable(stale_before))
            .values(
                status=SubscriptionStatus.NOTIFYING,
                claimed_at=now,
                claim_token=token,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(claim)
            if result.rowcount != 1:
                raise ClaimConflict(subscription_id)
            return await session.get(Subscription, subscription_id, populate_existing=True)

    async def delete(self, subscription_id: str) -> bool:
        """Retire a subscription after a confirmed send."""
        statement = delete(Subscription).where(Subscription.id == subscription_id)
        async with self._transaction() as session:
            result = await session.execute(statement)
            return result.rowcount == 1

    async def release(self, subscription_id: str, claim_token: str | None) -> bool:
        """Revert a claim to PENDING if it is still ours."""
        statement = (
            update(Subscription)
            .where(
                Subscription.id == subscription_id,
                Subscription.status == SubscriptionStatus.NOTIFYING,
                Subscription.claim_token == claim_token,
            )
            .values(status=SubscriptionStatus.PENDING, claimed_at=None, claim_token=None)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(statement)
            return result.rowcount == 1

    async def release_expired(self, stale_before: datetime) -> int:
        """Revert every claim older than ``stale_before``; returns the count."""
        statement = (
            update(Subscription)
            .where(
                Subscription.status == SubscriptionStatus.NOTIFYING,
                Subscription.claimed_at < stale_before,
            )
            .values(status=SubscriptionStatus.PENDING, claimed_at=None, claim_token=None)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction() as session:
            result = await session.execute(statement)
            return result.rowcount or 0

    async def ping(self) -> bool:
        try:
            async with self._transaction() as session:
                await session.execute(text("SELECT 1"))
            return True
        except StoreUnavailable:
            return False
