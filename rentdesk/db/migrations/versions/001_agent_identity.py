"""Create agent identity tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Tables: agents, tenants, agent_earnings, agent_activity_log, agent_edit_history
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

DENORMALIZED_TABLES = ("tenants", "agent_earnings", "agent_activity_log")


def upgrade() -> None:
    """Create agent identity tables."""
    op.create_table(
        "agents",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index(
        "uq_agents_name_upper", "agents", [sa.text("upper(name)")], unique=True
    )
    op.create_index("uq_agents_phone", "agents", ["phone"], unique=True)

    # Each of these carries a snapshot of the agent identity, not a foreign key
    for table in DENORMALIZED_TABLES:
        op.create_table(
            table,
            sa.Column("id", UUID, primary_key=True),
            sa.Column("agent_name", sa.String(100), nullable=False),
            sa.Column("agent_phone", sa.String(20), nullable=False),
            sa.Column("payload", JSONB, server_default="{}"),
            sa.Column(
                "created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")
            ),
        )
        op.create_index(f"idx_{table}_agent_phone", table, ["agent_phone"])

    op.create_table(
        "agent_edit_history",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("edit_batch_id", UUID, nullable=False),
        sa.Column("agent_id", UUID, nullable=False),
        sa.Column("old_name", sa.String(100), nullable=False),
        sa.Column("old_phone", sa.String(20), nullable=False),
        sa.Column("new_name", sa.String(100), nullable=False),
        sa.Column("new_phone", sa.String(20), nullable=False),
        sa.Column("edited_by", sa.String(255)),
        sa.Column("edited_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("undone_at", sa.TIMESTAMP(timezone=True)),
    )
    op.create_index("idx_agent_edit_history_batch", "agent_edit_history", ["edit_batch_id"])
    op.create_index(
        "idx_agent_edit_history_active",
        "agent_edit_history",
        ["edited_at"],
        postgresql_where=sa.text("undone_at IS NULL"),
    )


def downgrade() -> None:
    """Drop agent identity tables."""
    op.drop_table("agent_edit_history")
    for table in reversed(DENORMALIZED_TABLES):
        op.drop_table(table)
    op.drop_table("agents")
