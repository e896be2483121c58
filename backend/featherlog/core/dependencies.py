"""
Shared FastAPI dependencies and type aliases.

The Broadcaster lives on `app.state` (created in featherlog.main) and
reaches the routes through get_broadcaster(), never as a module global.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from featherlog.core.database import get_db_session
from featherlog.schemas.logs import LogOut
from featherlog.services.broadcaster import Broadcaster


def get_broadcaster(request: Request) -> Broadcaster[LogOut]:
    """Return the application's Broadcaster."""
    return request.app.state.broadcaster


# Type aliases for cleaner signatures
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
LogBroadcaster = Annotated[Broadcaster[LogOut], Depends(get_broadcaster)]
