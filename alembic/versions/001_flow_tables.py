"""Flow tables: instagram_accounts, flows, flow_executions, webhook_events.

App startup also runs Base.metadata.create_all, so each table is only created
when missing.

Revision ID: 001_flow_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_flow_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _existing_tables() -> set:
    return set(sa.inspect(op.get_bind()).get_table_names())


def upgrade() -> None:
    existing = _existing_tables()

    if "instagram_accounts" not in existing:
        op.create_table(
            "instagram_accounts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(), nullable=False),
            sa.Column("instagram_user_id", sa.String(), nullable=False),
            sa.Column("encrypted_access_token", sa.String(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_instagram_accounts_instagram_user_id", "instagram_accounts", ["instagram_user_id"], unique=True)

    if "flows" not in existing:
        op.create_table(
            "flows",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("account_id", sa.Integer(), sa.ForeignKey("instagram_accounts.id", ondelete="CASCADE"), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("nodes", sa.JSON(), nullable=False),
            sa.Column("edges", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_flows_account_id", "flows", ["account_id"])

    if "flow_executions" not in existing:
        op.create_table(
            "flow_executions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("flow_id", sa.Integer(), sa.ForeignKey("flows.id", ondelete="CASCADE"), nullable=False),
            sa.Column("account_id", sa.Integer(), sa.ForeignKey("instagram_accounts.id", ondelete="CASCADE"), nullable=False),
            sa.Column("trigger_type", sa.String(), nullable=False),
            sa.Column("trigger_data", sa.JSON(), nullable=False),
            sa.Column("status", sa.String(), nullable=False),
            sa.Column("execution_path", sa.JSON(), nullable=True),
            sa.Column("node_results", sa.JSON(), nullable=True),
            sa.Column("error_message", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_flow_executions_flow_id", "flow_executions", ["flow_id"])
        op.create_index("ix_flow_executions_created_at", "flow_executions", ["created_at"])

    if "webhook_events" not in existing:
        op.create_table(
            "webhook_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("account_id", sa.Integer(), sa.ForeignKey("instagram_accounts.id", ondelete="CASCADE"), nullable=True),
            sa.Column("event_type", sa.String(), nullable=False),
            sa.Column("payload", sa.JSON(), nullable=False),
            sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_webhook_events_account_id", "webhook_events", ["account_id"])
        op.create_index("ix_webhook_events_created_at", "webhook_events", ["created_at"])


def downgrade() -> None:
    op.drop_table("webhook_events")
    op.drop_table("flow_executions")
    op.drop_table("flows")
    op.drop_table("instagram_accounts")
