"""
Pydantic v2 schemas for the project admin endpoints.

Origin-list rules (non-empty, not exactly ["*"]) are enforced by the
project service, not here, so scripts and routes share one check.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from featherlog.schemas.logs import ensure_utc


class ProjectCreate(BaseModel):
    """Body of POST /api/logs/projects."""

    id: str = Field(..., min_length=1, max_length=255, examples=["demo"])
    name: str = Field(..., min_length=1, max_length=255, examples=["Demo"])
    origins: list[str] = Field(..., examples=[["https://demo.app"]])


class ProjectUpdate(BaseModel):
    """Body of PUT /api/logs/projects/{id}."""

    origins: list[str] = Field(..., examples=[["https://demo.app"]])
    name: str | None = Field(default=None, min_length=1, max_length=255)


class ProjectOut(BaseModel):
    """A project as shown to admins."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    origins: list[str]
    created_at: datetime.datetime

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value: datetime.datetime) -> datetime.datetime:
        return ensure_utc(value)


class ProjectEnvelope(BaseModel):
    """Single-project response: {"project": {...}}."""

    project: ProjectOut


class ProjectList(BaseModel):
    """Response of GET /api/logs/projects."""

    projects: list[ProjectOut]
