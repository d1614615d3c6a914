"""SQLAlchemy models for the waitlist store."""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Optional
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, Enum, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable across PostgreSQL and SQLite."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""


# =============================================================================
# Enums
# =============================================================================


class SubscriptionStatus(str, PyEnum):
    """Lifecycle state of a waitlist subscription.

    Retired subscriptions are deleted rather than given a status.
    """

    PENDING = "pending"
    NOTIFYING = "notifying"


# Identifier columns a restock event may be matched on
MATCHABLE_FIELDS = ("inventory_item_id", "variant_id", "product_id")


# =============================================================================
# Subscriptions
# =============================================================================


class Subscription(Base):
    """A shopper's request to be emailed when an item is back in stock.

    At least one of product_id, variant_id or inventory_item_id is set.
    The same email may hold any number of subscriptions.
    """

    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    # Catalog identifiers; events match inventory item, then variant, then product
    product_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    variant_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    inventory_item_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(
            SubscriptionStatus,
            name="subscription_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        default=SubscriptionStatus.PENDING,
        nullable=False,
    )

    # Claim bookkeeping, only set while status is NOTIFYING
    claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    claim_token: Mapped[Optional[str]] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_subscriptions_status_claimed_at", "status", "claimed_at"),
        CheckConstraint(
            "product_id IS NOT NULL OR variant_id IS NOT NULL OR inventory_item_id IS NOT NULL",
            name="ck_subscriptions_has_identifier",
        ),
    )

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} status={self.status.value}>"
