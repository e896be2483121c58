"""
Project admin router — manage tenants and their logs.

All endpoints require an admin bearer token.

  GET    /api/logs/projects            — list, ordered by name
  POST   /api/logs/projects            — create (409 if id exists)
  PUT    /api/logs/projects/{id}       — replace origins (and name)
  DELETE /api/logs/projects/{id}       — delete project + all its logs
  DELETE /api/logs/projects/{id}/logs  — clear logs, keep project
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from featherlog.auth.dependencies import get_current_user
from featherlog.auth.tokens import Principal
from featherlog.core.dependencies import DbSession
from featherlog.core.errors import (
    InvalidInput,
    ProjectConflict,
    ProjectNotFound,
)
from featherlog.schemas.logs import ClearLogsResponse, SuccessResponse
from featherlog.schemas.projects import (
    ProjectCreate,
    ProjectEnvelope,
    ProjectList,
    ProjectOut,
    ProjectUpdate,
)
from featherlog.services import projects as project_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projects"])

CurrentUser = Annotated[Principal, Depends(get_current_user)]


def _http_error(exc: Exception) -> HTTPException:
    """Map a project-service error to its HTTP status."""
    if isinstance(exc, ProjectNotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ProjectConflict):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


_SERVICE_ERRORS = (InvalidInput, ProjectConflict, ProjectNotFound)


@router.get(
    "",
    response_model=ProjectList,
    summary="List projects",
)
async def list_projects(session: DbSession, _user: CurrentUser) -> ProjectList:
    projects = await project_service.list_projects(session)
    return ProjectList(projects=[ProjectOut.model_validate(p) for p in projects])


@router.post(
    "",
    response_model=ProjectEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    description=(
        "origins must be non-empty and may not be just [\"*\"]; "
        "\"*\" alongside other origins is accepted."
    ),
)
async def create_project(
    payload: ProjectCreate,
    session: DbSession,
    user: CurrentUser,
) -> ProjectEnvelope:
    try:
        project = await project_service.create_project(
            session, payload.id, payload.name, payload.origins
        )
    except _SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc

    logger.info("Project %s created by %s", project.id, user.username)
    return ProjectEnvelope(project=ProjectOut.model_validate(project))


@router.put(
    "/{project_id}",
    response_model=ProjectEnvelope,
    summary="Update a project's origins",
)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    session: DbSession,
    _user: CurrentUser,
) -> ProjectEnvelope:
    try:
        project = await project_service.update_project(
            session, project_id, payload.origins, name=payload.name
        )
    except _SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc

    return ProjectEnvelope(project=ProjectOut.model_validate(project))


@router.delete(
    "/{project_id}",
    response_model=SuccessResponse,
    summary="Delete a project and all its logs",
)
async def delete_project(
    project_id: str,
    session: DbSession,
    user: CurrentUser,
) -> SuccessResponse:
    try:
        deleted_logs = await project_service.delete_project(session, project_id)
    except _SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc

    logger.info("Project %s deleted by %s", project_id, user.username)
    return SuccessResponse(
        message=f"Project {project_id} deleted along with {deleted_logs} log(s)",
    )


@router.delete(
    "/{project_id}/logs",
    response_model=ClearLogsResponse,
    summary="Delete all logs of a project",
)
async def clear_project_logs(
    project_id: str,
    session: DbSession,
    user: CurrentUser,
) -> ClearLogsResponse:
    try:
        deleted = await project_service.clear_project_logs(session, project_id)
    except _SERVICE_ERRORS as exc:
        raise _http_error(exc) from exc

    logger.info("Logs of project %s cleared by %s", project_id, user.username)
    return ClearLogsResponse(
        message=f"Deleted {deleted} log(s) for project {project_id}",
        deleted_count=deleted,
    )
