"""
FastAPI dependency for admin bearer-token authentication.

Flow:
  1. Take the token from `Authorization: Bearer <token>`, or from the
     `?token=` query parameter (EventSource can't set headers)
  2. Verify signature and expiry
  3. Return the Principal

Security:
  • Generic 401 for ALL failure modes (missing, malformed, expired)
  • Tokens are NEVER logged
"""

from __future__ import annotations

import logging

from fastapi import Header, HTTPException, Query, status

from featherlog.auth.errors import AuthenticationError
from featherlog.auth.tokens import Principal, authenticate

logger = logging.getLogger(__name__)

# Generic 401 — same message for all auth failures to avoid leaking info
_AUTH_FAILED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or missing access token",
    headers={"WWW-Authenticate": "Bearer"},
)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


async def get_current_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
    token: str | None = Query(default=None),
) -> Principal:
    """
    FastAPI dependency — resolves the bearer token to a Principal.

    Usage in routers:
        CurrentUser = Annotated[Principal, Depends(get_current_user)]

    The header wins over the query parameter when both are present.
    """
    raw_token = _bearer_token(authorization) or token
    if not raw_token:
        raise _AUTH_FAILED

    try:
        return authenticate(raw_token)
    except AuthenticationError as exc:
        logger.debug("Rejected admin token: %s", exc)
        raise _AUTH_FAILED from exc
