"""
Log store — the only code that reads or writes the `logs` table.

Contract:
  • insert_log()       — one atomic insert, id assigned by the database.
  • query_logs()       — AND-combined filters, newest first, paged, with
                         a total count taken from the same snapshot.
  • delete_logs_for_project() / delete_all_for_project_cascade()
                       — bulk deletes; logs are never deleted one by one.

Ordering is `timestamp DESC, id DESC` so identical queries always return
rows in the same order, even when many events share a timestamp.

Connection-level failures are re-raised as StorageUnavailable. Nothing
here retries.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from featherlog.core.config import settings
from featherlog.core.errors import InvalidQuery, ReferentialError, StorageUnavailable
from featherlog.models.log_event import LOG_LEVELS, LogEvent
from featherlog.schemas.logs import ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LogFilters:
    """Optional filters for query_logs(); unset fields don't filter.

    Attributes:
        project_id:     Exact project id.
        level:          One of error / warn / info.
        timestamp_from: Inclusive lower bound on event time.
        timestamp_to:   Inclusive upper bound on event time.
    """

    project_id: str | None = None
    level: str | None = None
    timestamp_from: datetime.datetime | None = None
    timestamp_to: datetime.datetime | None = None


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate driver connectivity failures into StorageUnavailable."""
    try:
        yield
    except (OperationalError, InterfaceError, OSError) as exc:
        logger.error("Storage unavailable: %s", exc.__class__.__name__)
        raise StorageUnavailable("Log storage is unavailable") from exc


# ── Insert ──────────────────────────────────────────────────
async def insert_log(
    session: AsyncSession,
    project_id: str,
    level: str,
    message: str,
    timestamp: datetime.datetime | None = None,
    metadata: dict[str, Any] | None = None,
) -> LogEvent:
    """
    Persist one log event and commit.

    The caller is expected to have checked the project already; the
    foreign key still guarantees that no orphaned log can be written.

    Raises:
        ReferentialError:   project_id matches no project.
        StorageUnavailable: the database could not be reached.
    """
    event = LogEvent(
        project_id=project_id,
        level=level,
        message=message,
        timestamp=ensure_utc(timestamp) if timestamp else datetime.datetime.now(datetime.timezone.utc),
        metadata_=dict(metadata or {}),
    )

    with storage_errors():
        try:
            session.add(event)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ReferentialError(
                f"Cannot insert log for unknown project '{project_id}'"
            ) from exc

    return event


# ── Query ───────────────────────────────────────────────────
def _apply_filters(stmt: Select, filters: LogFilters) -> Select:
    if filters.project_id is not None:
        stmt = stmt.where(LogEvent.project_id == filters.project_id)
    if filters.level is not None:
        stmt = stmt.where(LogEvent.level == filters.level)
    if filters.timestamp_from is not None:
        stmt = stmt.where(LogEvent.timestamp >= ensure_utc(filters.timestamp_from))
    if filters.timestamp_to is not None:
        stmt = stmt.where(LogEvent.timestamp <= ensure_utc(filters.timestamp_to))
    return stmt


def clamp_limit(limit: int) -> int:
    """Validate a page size and cap it at MAX_QUERY_LIMIT."""
    if limit < 0:
        raise InvalidQuery("limit must be zero or greater")
    return min(limit, settings.MAX_QUERY_LIMIT)


async def query_logs(
    session: AsyncSession,
    filters: LogFilters,
    limit: int,
    offset: int = 0,
) -> tuple[list[LogEvent], int]:
    """
    Return one page of matching logs (newest first) and the total match count.

    `limit` is capped at MAX_QUERY_LIMIT; an `offset` past the end simply
    yields an empty page. Page and total are read in one transaction —
    REPEATABLE READ on Postgres — so they describe the same snapshot.

    Raises:
        InvalidQuery:       negative limit/offset or unknown level.
        StorageUnavailable: the database could not be reached.
    """
    limit = clamp_limit(limit)
    if offset < 0:
        raise InvalidQuery("offset must be zero or greater")
    if filters.level is not None and filters.level not in LOG_LEVELS:
        raise InvalidQuery(f"level must be one of: {', '.join(LOG_LEVELS)}")

    count_stmt = _apply_filters(select(func.count()).select_from(LogEvent), filters)
    page_stmt = (
        _apply_filters(select(LogEvent), filters)
        .order_by(LogEvent.timestamp.desc(), LogEvent.id.desc())
        .limit(limit)
        .offset(offset)
    )

    with storage_errors():
        if session.get_bind().dialect.name == "postgresql" and not session.in_transaction():
            await session.connection(
                execution_options={"isolation_level": "REPEATABLE READ"}
            )

        total = (await session.execute(count_stmt)).scalar_one()
        events = list((await session.execute(page_stmt)).scalars().all()) if limit else []
        await session.commit()

    return events, total


# ── Delete ──────────────────────────────────────────────────
async def delete_all_for_project_cascade(
    session: AsyncSession,
    project_id: str,
) -> int:
    """
    Delete every log of a project WITHOUT committing.

    Used by the project service so the log delete and the project delete
    land in one transaction.
    """
    with storage_errors():
        result = await session.execute(
            delete(LogEvent).where(LogEvent.project_id == project_id)
        )
    return result.rowcount or 0


async def delete_logs_for_project(
    session: AsyncSession,
    project_id: str,
) -> int:
    """Delete every log of a project and commit. Returns the number removed."""
    deleted = await delete_all_for_project_cascade(session, project_id)
    with storage_errors():
        await session.commit()
    logger.info("Cleared %d logs for project %s", deleted, project_id)
    return deleted
