"""Create the waitlist subscriptions table.

Revision ID: 5d2e8c41a7b3
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

import sqlalchemy as sa
from alembic import op

revision = "5d2e8c41a7b3"
down_revision = None
branch_labels = None
depends_on = None

subscription_status = sa.Enum("pending", "notifying", name="subscription_status")


def upgrade() -> None:
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("product_id", sa.String(length=64), nullable=True),
        sa.Column("variant_id", sa.String(length=64), nullable=True),
        sa.Column("inventory_item_id", sa.String(length=64), nullable=True),
        sa.Column("status", subscription_status, nullable=False, server_default="pending"),
        sa.Column("claimed_at", sa.DateTime(), nullable=True),
        sa.Column("claim_token", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "product_id IS NOT NULL OR variant_id IS NOT NULL OR inventory_item_id IS NOT NULL",
            name="ck_subscriptions_has_identifier",
        ),
    )
    op.create_index("ix_subscriptions_email", "subscriptions", ["email"])
    op.create_index("ix_subscriptions_product_id", "subscriptions", ["product_id"])
    op.create_index("ix_subscriptions_variant_id", "subscriptions", ["variant_id"])
    op.create_index("ix_subscriptions_inventory_item_id", "subscriptions", ["inventory_item_id"])
    op.create_index(
        "ix_subscriptions_status_claimed_at", "subscriptions", ["status", "claimed_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_subscriptions_status_claimed_at", table_name="subscriptions")
    op.drop_index("ix_subscriptions_inventory_item_id", table_name="subscriptions")
    op.drop_index("ix_subscriptions_variant_id", table_name="subscriptions")
    op.drop_index("ix_subscriptions_product_id", table_name="subscriptions")
    op.drop_index("ix_subscriptions_email", table_name="subscriptions")
    op.drop_table("subscriptions")
    subscription_status.drop(op.get_bind(), checkfirst=True)
