"""Create users table with entitlement fields.

Revision ID: 00001
Revises:
Create Date: 2025-06-02 10:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

revision = "00001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create users table."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("plan", sa.String(50), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(50), nullable=True),
        sa.Column("subscription_expiry", sa.DateTime(), nullable=True),
        sa.Column("campaign_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("campaign_count_period", sa.String(7), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )


def downgrade():
    """Drop users table."""
    op.drop_table("users")
