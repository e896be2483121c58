"""
Log read routers — paginated history and the live stream.

Endpoints (admin bearer token required):
  GET /api/logs          — filtered, newest-first page + total
  GET /api/logs/stream   — Server-Sent Events of newly ingested logs

The two views are consistent on their own but not with each other: the
stream keeps no cursor, so a client that reconnects re-fetches recent
history with GET /api/logs to fill the gap.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from featherlog.auth.dependencies import get_current_user
from featherlog.auth.tokens import Principal
from featherlog.core.config import settings
from featherlog.core.dependencies import DbSession, LogBroadcaster
from featherlog.core.errors import InvalidQuery
from featherlog.models.log_event import LOG_LEVELS
from featherlog.schemas.logs import LogOut, LogsPage, parse_timestamp
from featherlog.services.broadcaster import Subscription
from featherlog.services.log_store import LogFilters, query_logs

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Logs"])

CurrentUser = Annotated[Principal, Depends(get_current_user)]

_SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
_KEEP_ALIVE = ": keep-alive\n\n"


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _check_level(level: str | None) -> str | None:
    if level and level not in LOG_LEVELS:
        raise InvalidQuery(f"level must be one of: {', '.join(LOG_LEVELS)}")
    return level or None


# ── History ─────────────────────────────────────────────────
@router.get(
    "",
    response_model=LogsPage,
    summary="Query stored logs",
    description=(
        "Filters by project-id, level and an inclusive startDate/endDate "
        "range. Newest first; limit defaults to 100 and is capped at 1000."
    ),
)
async def get_logs(
    session: DbSession,
    _user: CurrentUser,
    project_id: str | None = Query(default=None, alias="project-id"),
    level: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    limit: int | None = Query(default=None),
    offset: int = Query(default=0),
) -> LogsPage:
    """
    Every filter value is validated up front — an unparsable date is a
    400, never a silently empty result.
    """
    try:
        filters = LogFilters(
            project_id=project_id or None,
            level=_check_level(level),
            timestamp_from=parse_timestamp(start_date, "startDate") if start_date else None,
            timestamp_to=parse_timestamp(end_date, "endDate") if end_date else None,
        )
        effective_limit = settings.DEFAULT_QUERY_LIMIT if limit is None else limit
        events, total = await query_logs(session, filters, effective_limit, offset)
    except InvalidQuery as exc:
        raise _bad_request(exc) from exc

    return LogsPage(
        logs=[LogOut.model_validate(e) for e in events],
        total=total,
        limit=min(effective_limit, settings.MAX_QUERY_LIMIT),
        offset=offset,
    )


# ── Live stream ─────────────────────────────────────────────
def format_sse(data: dict[str, Any]) -> str:
    """One SSE `data:` frame."""
    return f"data: {json.dumps(data)}\n\n"


async def sse_log_frames(
    subscription: Subscription[LogOut],
    *,
    heartbeat_seconds: float,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    project_id: str | None = None,
    level: str | None = None,
) -> AsyncIterator[str]:
    """
    Render a subscription as SSE frames.

    Sends {"type": "connected"} first, then {"type": "log", "log": {...}}
    for each event matching the optional project/level filters. A
    keep-alive comment goes out after `heartbeat_seconds` of silence,
    which is also when a vanished client is noticed.

    The subscription is closed when the generator finishes for any
    reason, including cancellation on client disconnect.
    """
    try:
        yield format_sse({"type": "connected"})
        while True:
            try:
                event = await asyncio.wait_for(subscription.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                if is_disconnected is not None and await is_disconnected():
                    break
                yield _KEEP_ALIVE
                continue

            if event is None:  # closed (shutdown or overflow)
                break
            if project_id is not None and event.project_id != project_id:
                continue
            if level is not None and event.level != level:
                continue
            yield format_sse({"type": "log", "log": event.to_wire()})
    finally:
        subscription.close()


@router.get(
    "/stream",
    summary="Live log stream (Server-Sent Events)",
    description=(
        "Token may be passed as ?token= since EventSource cannot set "
        "headers. Optional project-id / level narrow the stream."
    ),
    response_class=StreamingResponse,
)
async def stream_logs(
    request: Request,
    user: CurrentUser,
    broadcaster: LogBroadcaster,
    project_id: str | None = Query(default=None, alias="project-id"),
    level: str | None = Query(default=None),
) -> StreamingResponse:
    """Subscribe before responding so nothing published after this call is missed."""
    try:
        level = _check_level(level)
    except InvalidQuery as exc:
        raise _bad_request(exc) from exc

    subscription = broadcaster.subscribe()
    logger.info("Stream opened by %s (%d viewers)", user.username, broadcaster.subscriber_count)

    frames = sse_log_frames(
        subscription,
        heartbeat_seconds=settings.STREAM_HEARTBEAT_SECONDS,
        is_disconnected=request.is_disconnected,
        project_id=project_id or None,
        level=level,
    )
    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
        # Runs even if the body iterator never started.
        background=BackgroundTask(subscription.close),
    )
