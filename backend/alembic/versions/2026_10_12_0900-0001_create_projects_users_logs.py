"""create projects, users and logs tables

Revision ID: 0001
Revises:
Create Date: 2026-10-12

Initial schema:
  - projects: tenant id chosen by the creator + JSONB origin list
    (non-empty, enforced by a check constraint)
  - users: admin accounts (argon2 password hashes)
  - logs: log events, ON DELETE CASCADE from projects
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. projects ─────────────────────────────────────────
    op.create_table(
        "projects",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("origins", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "jsonb_array_length(origins) > 0",
            name="ck_projects_origins_not_empty",
        ),
    )

    # ── 2. users ────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    # ── 3. logs ─────────────────────────────────────────────
    op.create_table(
        "logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.String(255), nullable=False),
        sa.Column("level", sa.String(10), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "level IN ('error', 'warn', 'info')",
            name="ck_logs_level_valid",
        ),
        sa.CheckConstraint("length(message) > 0", name="ck_logs_message_not_empty"),
    )
    op.create_index("ix_logs_project_id", "logs", ["project_id"])
    op.create_index("ix_logs_timestamp", "logs", ["timestamp"])
    op.create_index("ix_logs_level", "logs", ["level"])
    op.create_index("ix_logs_project_id_timestamp", "logs", ["project_id", "timestamp"])


def downgrade() -> None:
    op.drop_index("ix_logs_project_id_timestamp", table_name="logs")
    op.drop_index("ix_logs_level", table_name="logs")
    op.drop_index("ix_logs_timestamp", table_name="logs")
    op.drop_index("ix_logs_project_id", table_name="logs")
    op.drop_table("logs")
    op.drop_table("users")
    op.drop_table("projects")
