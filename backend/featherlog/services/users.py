"""
Admin user accounts: login verification and CLI provisioning.

There is no self-registration; users are created with
`python -m scripts.create_user`.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from featherlog.auth.passwords import hash_password, verify_password
from featherlog.models.user import User
from featherlog.services.log_store import storage_errors

logger = logging.getLogger(__name__)


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    with storage_errors():
        result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def authenticate_user(
    session: AsyncSession,
    username: str,
    password: str,
) -> User | None:
    """Return the user if the credentials match, else None."""
    user = await get_user_by_username(session, username)
    if user is None or not verify_password(user.password_hash, password):
        return None
    return user


async def upsert_user(session: AsyncSession, username: str, password: str) -> User:
    """Create a user, or reset the password of an existing one, and commit."""
    user = await get_user_by_username(session, username)
    if user is None:
        user = User(username=username, password_hash=hash_password(password))
        session.add(user)
        logger.info("Creating admin user %s", username)
    else:
        user.password_hash = hash_password(password)
        logger.info("Resetting password for admin user %s", username)

    with storage_errors():
        await session.commit()
    return user
