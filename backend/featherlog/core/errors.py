"""
Domain errors raised by the service layer.

Routers translate these into HTTP responses; services never import
FastAPI. Messages are safe to show to API callers.
"""


class FeatherlogError(Exception):
    """Base class for all domain errors."""


# ── 400 ─────────────────────────────────────────────────────
class InvalidInput(FeatherlogError):
    """Malformed or missing request data."""


class InvalidLogPayload(InvalidInput):
    """An ingested log body is missing fields or has bad values."""


class InvalidQuery(InvalidInput):
    """A log query filter or paging value could not be used."""


class InvalidOrigins(InvalidInput):
    """A project's origin list breaks the origin-list invariant."""


class InvalidProject(InvalidInput):
    """A project id or name is blank."""


# ── 404 / 409 ───────────────────────────────────────────────
class ProjectNotFound(FeatherlogError):
    """No project with the requested id."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project '{project_id}' not found")
        self.project_id = project_id


class ProjectConflict(FeatherlogError):
    """A project with the requested id already exists."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project ID '{project_id}' already exists")
        self.project_id = project_id


# ── 500 ─────────────────────────────────────────────────────
class ReferentialError(FeatherlogError):
    """A log insert referenced a project that does not exist."""


class StorageUnavailable(FeatherlogError):
    """The database could not be reached or the connection failed."""
