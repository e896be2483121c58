"""
Bearer tokens for the admin API.

HS256 JWTs carrying `{id, username}` plus `iat`/`exp`. Verification is
stateless — no DB lookup — so the query and stream routes can
authenticate without touching storage.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass

import jwt

from featherlog.auth.errors import AuthenticationError
from featherlog.core.config import settings

ALGORITHM = "HS256"


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated admin behind a request."""

    id: int
    username: str


def issue_token(user_id: int, username: str) -> str:
    """Sign a token for an admin user, valid for JWT_EXPIRES_HOURS."""
    now = datetime.datetime.now(datetime.timezone.utc)
    claims = {
        "id": user_id,
        "username": username,
        "iat": now,
        "exp": now + datetime.timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=ALGORITHM)


def authenticate(token: str) -> Principal:
    """
    Verify a token and return its Principal.

    Raises:
        AuthenticationError: bad signature, expired, or missing claims.
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError(f"Token rejected: {exc.__class__.__name__}") from exc

    user_id = claims.get("id")
    username = claims.get("username")
    if not isinstance(user_id, int) or not isinstance(username, str):
        raise AuthenticationError("Token is missing id/username claims")

    return Principal(id=user_id, username=username)
