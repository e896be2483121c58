"""
Ingestion router — the public entry point for client log events.

POST /api/logs
  1. Parses the body: known fields explicitly, everything else → metadata.
  2. Resolves the project (unknown → generic 401).
  3. Checks the declared Origin/Referer against the project's origins (403).
  4. Persists the event.
  5. Publishes the stored event to live viewers (best-effort).
  6. Returns 201 {"success": true}.

No session auth: the SDK runs in browsers and servers alike. Success
means the event is durably stored; a broadcast failure never turns a
stored event into an error response.
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request, status

from featherlog.core.dependencies import DbSession, LogBroadcaster
from featherlog.core.errors import InvalidLogPayload, ReferentialError
from featherlog.models.log_event import LogEvent
from featherlog.schemas.logs import LogOut, SuccessResponse, split_log_payload
from featherlog.services.broadcaster import Broadcaster
from featherlog.services.log_store import insert_log
from featherlog.services.origins import extract_request_origin, is_origin_allowed
from featherlog.services.projects import get_project

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Ingestion"])

# Same response for every project-level rejection so callers can't probe
# which project ids exist.
_PROJECT_AUTH_FAILED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid project credentials",
)

_ORIGIN_FORBIDDEN = HTTPException(
    status_code=status.HTTP_403_FORBIDDEN,
    detail="Origin not allowed for this project",
)


def _broadcast(broadcaster: Broadcaster[LogOut], event: LogEvent) -> None:
    """Publish a stored event; failures are logged and swallowed."""
    try:
        delivered = broadcaster.publish(LogOut.model_validate(event))
        logger.debug("Log %s broadcast to %d subscriber(s)", event.id, delivered)
    except Exception:
        logger.exception("Failed to broadcast log %s", event.id)


@router.post(
    "",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest a single log event",
    description=(
        "Accepts {project-id, level, message, timestamp?, ...}. Any extra "
        "key is stored as metadata. Origin-checked against the project."
    ),
)
async def ingest_log(
    request: Request,
    session: DbSession,
    broadcaster: LogBroadcaster,
) -> SuccessResponse:
    """Core ingestion endpoint."""

    # ── 1. Parse ────────────────────────────────────────────
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be valid JSON",
        ) from exc

    try:
        payload, metadata = split_log_payload(body)
    except InvalidLogPayload as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    # ── 2. Resolve project ──────────────────────────────────
    project = await get_project(session, payload.project_id)
    if project is None:
        logger.info("Rejected log for unknown project")
        raise _PROJECT_AUTH_FAILED

    # ── 3. Origin check ─────────────────────────────────────
    declared_origin = extract_request_origin(
        request.headers.get("origin"),
        request.headers.get("referer"),
    )
    if not is_origin_allowed(declared_origin, project.origins):
        logger.info(
            "Rejected log for project %s from origin %s", project.id, declared_origin
        )
        raise _ORIGIN_FORBIDDEN

    # ── 4. Persist ──────────────────────────────────────────
    try:
        event = await insert_log(
            session,
            project_id=project.id,
            level=payload.level,
            message=payload.message,
            timestamp=payload.timestamp,
            metadata=metadata,
        )
    except ReferentialError as exc:
        # Project vanished between lookup and insert (concurrent delete).
        logger.exception("Log insert lost its project %s", project.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store the log event",
        ) from exc

    # ── 5. Broadcast (best-effort) ──────────────────────────
    _broadcast(broadcaster, event)

    return SuccessResponse()
