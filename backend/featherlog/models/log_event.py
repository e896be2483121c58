"""
SQLAlchemy model for the `logs` table.

Each row is one immutable log event sent by a client application.

Design notes:
  • id is an autoincrementing integer — unique and monotonically
    increasing, used as the stable tie-break when timestamps collide.
  • timestamp is the client's event time (or server time if absent);
    created_at is when the server stored it.
  • metadata_ is JSONB on Postgres (plain JSON elsewhere) — an opaque
    bag of whatever extra keys the client sent.
  • Indexes cover the admin filters: project, level, time range.
"""

import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from featherlog.core.database import Base

LOG_LEVELS = ("error", "warn", "info")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class LogEvent(Base):
    """One log line with its project, level and metadata."""

    __tablename__ = "logs"

    # ── Primary key ─────────────────────────────────────────
    # SQLite only autoincrements INTEGER PRIMARY KEY columns.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    # ── Tenant ──────────────────────────────────────────────
    project_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )

    # ── Content ─────────────────────────────────────────────
    level: Mapped[str] = mapped_column(String(10), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Column named `metadata_` because `metadata` is reserved on
    # declarative classes; maps to DB column `metadata`.
    metadata_: Mapped[dict] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    # ── Table-level constraints ─────────────────────────────
    __table_args__ = (
        CheckConstraint(
            "level IN ('error', 'warn', 'info')",
            name="ck_logs_level_valid",
        ),
        CheckConstraint("length(message) > 0", name="ck_logs_message_not_empty"),
        Index("ix_logs_project_id", "project_id"),
        Index("ix_logs_timestamp", "timestamp"),
        Index("ix_logs_level", "level"),
        Index("ix_logs_project_id_timestamp", "project_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<LogEvent id={self.id} project={self.project_id!r} "
            f"level={self.level}>"
        )
