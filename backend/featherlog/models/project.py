"""
Project model — one tenant of the log plane.

A project owns its log events (ON DELETE CASCADE) and the list of
origins allowed to write to it from a browser. The id is chosen by the
creator and never changes; the SDK embeds it in every log payload.
"""

import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column

from featherlog.core.database import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Project(Base):
    """One tenant — the top-level isolation boundary for logs."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(
        String(255), nullable=False,
    )
    # Ordered list of origin patterns; never empty, never exactly ["*"].
    origins: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id!r} name={self.name!r}>"
