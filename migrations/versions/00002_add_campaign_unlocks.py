"""Add campaign unlocks table.

Revision ID: 00002
Revises: 00001
Create Date: 2025-06-02 10:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

revision = "00002"
down_revision = "00001"
branch_labels = None
depends_on = None


def upgrade():
    """Create campaign_unlocks table."""
    op.create_table(
        "campaign_unlocks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=False),
        sa.Column("payment_id", sa.String(255), nullable=False),
        sa.Column("order_id", sa.String(255), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="paid"),
        sa.Column("source", sa.String(50), nullable=False, server_default="webhook"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        # one unlock per payment and campaign, also under concurrent deliveries
        sa.UniqueConstraint(
            "resource_id", "payment_id", name="uq_campaign_unlocks_resource_payment"
        ),
    )

    op.create_index("idx_campaign_unlocks_user_id", "campaign_unlocks", ["user_id"])
    op.create_index("idx_campaign_unlocks_payment_id", "campaign_unlocks", ["payment_id"])


def downgrade():
    """Drop campaign_unlocks table."""
    op.drop_index("idx_campaign_unlocks_payment_id", "campaign_unlocks")
    op.drop_index("idx_campaign_unlocks_user_id", "campaign_unlocks")
    op.drop_table("campaign_unlocks")
