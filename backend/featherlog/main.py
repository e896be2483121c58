"""
FastAPI application entrypoint.

Lifespan:
  • On startup: verify DB connectivity (non-fatal).
  • On shutdown: end live streams, dispose the engine cleanly.

Routers:
  • /api/logs           — ingestion (public), query + live stream (admin)
  • /api/logs/projects  — project management (admin)
  • /api/auth           — admin login
  • /health             — shallow liveness probe

Run with:
    uvicorn featherlog.main:app
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from featherlog.core.config import settings
from featherlog.core.database import engine
from featherlog.core.errors import StorageUnavailable
from featherlog.routers.auth import router as auth_router
from featherlog.routers.ingest import router as ingest_router
from featherlog.routers.logs import router as logs_router
from featherlog.routers.projects import router as projects_router
from featherlog.schemas.logs import LogOut
from featherlog.services.broadcaster import Broadcaster

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    # Startup — verify DB is reachable
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified ✓")
    except Exception:
        logger.warning(
            "Could not reach the database on startup. "
            "The app will start, but requests will fail until the DB is available."
        )

    yield  # ← application runs here

    # Shutdown — end open streams, then clean up connection pool
    app.state.broadcaster.close_all()
    await engine.dispose()
    logger.info("Database engine disposed ✓")


# ── Error rendering ─────────────────────────────────────────
# Every error body is {"error": "<message>"}.
_REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")


async def _http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(
            str(part) for part in first.get("loc", ()) if part not in _REQUEST_LOCATIONS
        )
        message = f"Invalid value for '{field}': {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


async def _storage_unavailable_handler(
    _request: Request, exc: StorageUnavailable
) -> JSONResponse:
    logger.error("Request failed: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# ── App ─────────────────────────────────────────────────────
def create_app(broadcaster: Broadcaster[LogOut] | None = None) -> FastAPI:
    """
    Build the application.

    One Broadcaster serves both the ingestion and the stream routes; pass
    one in to share it (tests do), otherwise a fresh one is created.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description=(
            "Multi-tenant log ingestion with filtered history "
            "and a live stream for admins."
        ),
        lifespan=lifespan,
    )
    if broadcaster is None:
        broadcaster = Broadcaster(queue_size=settings.STREAM_QUEUE_SIZE)
    app.state.broadcaster = broadcaster

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials="*" not in settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StorageUnavailable, _storage_unavailable_handler)

    # Mount routers
    app.include_router(ingest_router, prefix="/api/logs")
    app.include_router(logs_router, prefix="/api/logs")
    app.include_router(projects_router, prefix="/api/logs/projects")
    app.include_router(auth_router, prefix="/api/auth")

    @app.get(
        "/health",
        tags=["System"],
        summary="Liveness probe",
    )
    async def health_check() -> dict[str, str | int]:
        """Shallow health check — confirms the process is alive."""
        return {
            "status": "healthy",
            "subscribers": app.state.broadcaster.subscriber_count,
        }

    return app


app = create_app()
