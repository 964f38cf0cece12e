"""Create comments, leaders and module_settings tables

Revision ID: 5c2e7d41a9b0
Revises:
Create Date: 2026-10-17 10:12:03.418227

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e7d41a9b0'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- comments ---
    op.create_table(
        "comments",
        sa.Column("key", sa.String(255), primary_key=True),
        sa.Column("channel", sa.String(100), nullable=False),
        sa.Column("thread_id", sa.String(100), nullable=True),
        sa.Column("thread_text", sa.Text, nullable=True),
        sa.Column("sender_id", sa.String(100), nullable=False),
        sa.Column("message_id", sa.String(100), nullable=False),
        sa.Column("message_text", sa.Text, nullable=False, server_default=""),
        sa.Column("score", sa.Float, nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_comments_channel_sender", "comments", ["channel", "sender_id"])
    op.create_index("ix_comments_channel_thread", "comments", ["channel", "thread_id"])

    # --- leaders ---
    op.create_table(
        "leaders",
        sa.Column("key", sa.String(255), primary_key=True),
        sa.Column("channel", sa.String(100), nullable=False),
        sa.Column("sender_id", sa.String(100), nullable=False),
        sa.Column("score", sa.Float, nullable=False, server_default="0"),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_leaders_channel_score", "leaders", ["channel", "score"])

    # --- module_settings (singleton) ---
    op.create_table(
        "module_settings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="disable"),
        sa.Column("job_id", sa.Integer, nullable=True),
        sa.Column(
            "threads",
            sa.JSON().with_variant(postgresql.JSONB, "postgresql"),
            nullable=False,
        ),
        sa.Column("launch_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("project_id", sa.String(100), nullable=False, server_default=""),
        sa.Column("api_key", sa.String(255), nullable=False, server_default=""),
        sa.CheckConstraint("id = 1", name="ck_module_settings_singleton"),
        sa.CheckConstraint(
            "status IN ('disable', 'waiting', 'inwork')",
            name="ck_module_settings_status",
        ),
    )


def downgrade() -> None:
    op.drop_table("module_settings")
    op.drop_index("ix_leaders_channel_score", table_name="leaders")
    op.drop_table("leaders")
    op.drop_index("ix_comments_channel_thread", table_name="comments")
    op.drop_index("ix_comments_channel_sender", table_name="comments")
    op.drop_table("comments")
