"""
Pydantic v2 schemas for log ingestion and retrieval.

Separation:
  • LogIngest  — the KNOWN fields of what a client sends.
  • LogOut     — what the server returns / streams after persistence.

Ingest bodies are schema-less beyond the known fields: split_log_payload()
parses those explicitly and returns every other key untouched as the
event's metadata.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from featherlog.core.errors import InvalidLogPayload, InvalidQuery

LogLevel = Literal["error", "warn", "info"]

# Keys of an ingest body that are NOT metadata.
KNOWN_INGEST_FIELDS = frozenset({"project-id", "level", "message", "timestamp"})
_REQUIRED_INGEST_FIELDS = ("project-id", "level", "message")

_DATETIME = TypeAdapter(datetime.datetime)


def ensure_utc(value: datetime.datetime) -> datetime.datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def parse_timestamp(value: str, field: str) -> datetime.datetime:
    """Parse an ISO-8601 query value or raise InvalidQuery naming the field."""
    try:
        return ensure_utc(_DATETIME.validate_python(value))
    except ValidationError as exc:
        raise InvalidQuery(f"Invalid {field}: {value!r} is not an ISO-8601 date") from exc


# ── Request schema ──────────────────────────────────────────
class LogIngest(BaseModel):
    """Known fields of a POST /api/logs body."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    project_id: str = Field(..., alias="project-id", min_length=1, max_length=255)
    level: LogLevel
    message: str = Field(..., min_length=1)
    timestamp: datetime.datetime | None = None

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime.datetime | None) -> datetime.datetime | None:
        return ensure_utc(value) if value is not None else None


def split_log_payload(body: Any) -> tuple[LogIngest, dict[str, Any]]:
    """
    Split an ingest body into (known fields, metadata).

    Every key outside KNOWN_INGEST_FIELDS is copied verbatim into the
    metadata dict — including a key literally named "metadata".

    Raises:
        InvalidLogPayload: body isn't an object, a required field is
            missing, or a known field has a bad value.
    """
    if not isinstance(body, Mapping):
        raise InvalidLogPayload("Request body must be a JSON object")

    missing = [f for f in _REQUIRED_INGEST_FIELDS if body.get(f) in (None, "")]
    if missing:
        raise InvalidLogPayload(
            "Missing required fields: " + ", ".join(_REQUIRED_INGEST_FIELDS)
        )

    known = {k: v for k, v in body.items() if k in KNOWN_INGEST_FIELDS}
    metadata = {k: v for k, v in body.items() if k not in KNOWN_INGEST_FIELDS}

    try:
        payload = LogIngest.model_validate(known)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "body"
        raise InvalidLogPayload(f"Invalid value for '{field}': {error['msg']}") from exc

    return payload, metadata


# ── Response schemas ────────────────────────────────────────
class LogOut(BaseModel):
    """
    One stored log event, as returned by GET /api/logs and pushed on the
    live stream. Serialises `project_id` as "project-id".
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    project_id: str = Field(
        validation_alias=AliasChoices("project_id", "project-id"),
        serialization_alias="project-id",
    )
    level: str
    message: str
    timestamp: datetime.datetime
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        # ORM attribute is `metadata_` (column name is `metadata`)
        validation_alias=AliasChoices("metadata_", "metadata"),
    )

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime.datetime) -> datetime.datetime:
        # SQLite hands back naive datetimes; everything is stored as UTC.
        return ensure_utc(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_default(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with the public field names."""
        return self.model_dump(mode="json", by_alias=True)


class LogsPage(BaseModel):
    """Response of GET /api/logs."""

    logs: list[LogOut]
    total: int
    limit: int
    offset: int


class ClearLogsResponse(BaseModel):
    """Response of DELETE /api/logs/projects/{id}/logs."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    deleted_count: int = Field(
        validation_alias=AliasChoices("deleted_count", "deletedCount"),
        serialization_alias="deletedCount",
    )


class SuccessResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str | None = None
