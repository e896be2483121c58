"""
Project registry — creation, lookup, origin updates and deletion.

Invariants kept here (routers and scripts both go through this module):
  • A project's origin list is never empty and never exactly ["*"].
    "*" next to other origins is allowed.
  • Deleting a project deletes all of its logs in the same transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from featherlog.core.errors import (
    InvalidOrigins,
    InvalidProject,
    ProjectConflict,
    ProjectNotFound,
)
from featherlog.models.project import Project
from featherlog.services.log_store import (
    delete_all_for_project_cascade,
    delete_logs_for_project,
    storage_errors,
)

logger = logging.getLogger(__name__)


def validate_origins(origins: Iterable[str]) -> list[str]:
    """
    Check and clean an origin list.

    Strips whitespace and drops duplicates (first occurrence wins).

    Raises:
        InvalidOrigins: the list is empty, holds a blank or non-string
            entry, or is exactly ["*"].
    """
    if isinstance(origins, str):
        raise InvalidOrigins("origins must be a list of strings")

    cleaned: list[str] = []
    for origin in origins:
        if not isinstance(origin, str) or not origin.strip():
            raise InvalidOrigins("origins must be non-empty strings")
        origin = origin.strip()
        if origin not in cleaned:
            cleaned.append(origin)

    if not cleaned:
        raise InvalidOrigins("At least one origin is required")
    if cleaned == ["*"]:
        raise InvalidOrigins("Cannot use '*' as the only origin")
    return cleaned


async def get_project(session: AsyncSession, project_id: str) -> Project | None:
    """Return the project or None."""
    with storage_errors():
        return await session.get(Project, project_id)


async def _require_project(session: AsyncSession, project_id: str) -> Project:
    project = await get_project(session, project_id)
    if project is None:
        raise ProjectNotFound(project_id)
    return project


async def list_projects(session: AsyncSession) -> list[Project]:
    """All projects ordered by name (id breaks ties)."""
    stmt = select(Project).order_by(Project.name, Project.id)
    with storage_errors():
        result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_project(
    session: AsyncSession,
    project_id: str,
    name: str,
    origins: Iterable[str],
) -> Project:
    """
    Create a project and commit. Surrounding whitespace is stripped from
    the id and name, so " demo " and "demo" are the same project.

    Raises:
        InvalidProject:  blank id or name.
        InvalidOrigins:  origin list breaks the invariant.
        ProjectConflict: the id is taken (also when a concurrent create wins).
    """
    project_id = project_id.strip()
    if not project_id or not name.strip():
        raise InvalidProject("Project id and name are required")
    cleaned = validate_origins(origins)

    if await get_project(session, project_id) is not None:
        raise ProjectConflict(project_id)

    project = Project(id=project_id, name=name.strip(), origins=cleaned)
    with storage_errors():
        try:
            session.add(project)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ProjectConflict(project_id) from exc

    logger.info("Created project %s with %d origin(s)", project_id, len(cleaned))
    return project


async def update_project(
    session: AsyncSession,
    project_id: str,
    origins: Iterable[str],
    name: str | None = None,
) -> Project:
    """
    Replace a project's origins (and optionally its name) and commit.

    Raises:
        InvalidOrigins:  origin list breaks the invariant.
        InvalidProject:  blank name.
        ProjectNotFound: no such project.
    """
    cleaned = validate_origins(origins)
    if name is not None and not name.strip():
        raise InvalidProject("Project name must not be blank")

    project = await _require_project(session, project_id)
    project.origins = cleaned
    if name is not None:
        project.name = name.strip()

    with storage_errors():
        await session.commit()

    logger.info("Updated project %s", project_id)
    return project


async def delete_project(session: AsyncSession, project_id: str) -> int:
    """
    Delete a project and all of its logs in one transaction.

    Returns the number of logs removed.

    Raises:
        ProjectNotFound: no such project (e.g. already deleted).
    """
    project = await _require_project(session, project_id)

    deleted_logs = await delete_all_for_project_cascade(session, project_id)
    with storage_errors():
        await session.delete(project)
        await session.commit()

    logger.info("Deleted project %s and %d log(s)", project_id, deleted_logs)
    return deleted_logs


async def clear_project_logs(session: AsyncSession, project_id: str) -> int:
    """
    Delete all logs of an existing project, keeping the project.

    Raises:
        ProjectNotFound: no such project.
    """
    await _require_project(session, project_id)
    return await delete_logs_for_project(session, project_id)
