"""initial_schema

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-18

Creates users, webhooks and requests (captured inbound calls).
Deleting a user removes its webhooks; deleting a webhook removes its
captured requests.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, webhooks and requests tables."""

    # ==========================================================================
    # 1. users
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(255), nullable=False, comment="Token subject"),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"])

    # ==========================================================================
    # 2. webhooks
    # ==========================================================================
    op.create_table(
        "webhooks",
        sa.Column("id", sa.String(255), nullable=False, comment="Generated webhook identifier"),
        sa.Column("user_id", sa.String(255), nullable=False, comment="Owner"),
        sa.Column(
            "forward_url",
            sa.Text(),
            nullable=False,
            server_default="",
            comment="Forward target, empty disables forwarding",
        ),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("source_type", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE", onupdate="CASCADE"),
    )
    op.create_index("ix_webhooks_created_at", "webhooks", ["created_at"])
    op.create_index("idx_webhooks_user_id_created_at", "webhooks", ["user_id", "created_at"])

    # ==========================================================================
    # 3. requests
    # ==========================================================================
    op.create_table(
        "requests",
        sa.Column("request_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("webhook_id", sa.String(255), nullable=False),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column(
            "headers",
            JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
            comment="Lower-case header name to list of values",
        ),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("request_id"),
        sa.ForeignKeyConstraint(["webhook_id"], ["webhooks.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_requests_webhook_id_received_at", "requests", ["webhook_id", "received_at"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index("idx_requests_webhook_id_received_at", table_name="requests")
    op.drop_table("requests")
    op.drop_index("idx_webhooks_user_id_created_at", table_name="webhooks")
    op.drop_index("ix_webhooks_created_at", table_name="webhooks")
    op.drop_table("webhooks")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")
