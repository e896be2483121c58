"""
Python client for sending logs to a Featherlog server.

    logger = Logger("my-project")
    await logger.error("Payment failed", order_id=42)

Endpoint resolution:
  1. the `endpoint` argument
  2. the FEATHERLOG_ENDPOINT environment variable
  3. http://localhost:3000/api/logs

Sending never raises: a logging outage must not break the application
that is logging. Failures are reported through the `featherlog.sdk`
standard-library logger instead.
"""

from __future__ import annotations

import datetime
import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:3000/api/logs"
ENDPOINT_ENV_VAR = "FEATHERLOG_ENDPOINT"
_TIMEOUT = 10.0


class Logger:
    """Async log sender bound to one project."""

    def __init__(
        self,
        project_id: str,
        endpoint: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not project_id:
            raise ValueError("Logger requires a project-id")

        self.project_id = project_id
        self.endpoint = endpoint or os.environ.get(ENDPOINT_ENV_VAR) or DEFAULT_ENDPOINT
        self._client = client or httpx.AsyncClient(timeout=_TIMEOUT)
        self._owns_client = client is None

    async def error(self, message: str, **metadata: Any) -> bool:
        return await self.log("error", message, **metadata)

    async def warn(self, message: str, **metadata: Any) -> bool:
        return await self.log("warn", message, **metadata)

    async def info(self, message: str, **metadata: Any) -> bool:
        return await self.log("info", message, **metadata)

    async def log(self, level: str, message: str, **metadata: Any) -> bool:
        """
        Send one event. Extra keyword arguments travel as top-level keys
        and are stored server-side as metadata.

        Returns True if the server accepted the event.
        """
        body = {
            **metadata,
            "project-id": self.project_id,
            "level": level,
            "message": message,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        try:
            response = await self._client.post(self.endpoint, json=body)
        except httpx.HTTPError as exc:
            logger.warning("Featherlog: error sending log: %s", exc)
            return False

        if response.is_success:
            return True
        logger.warning("Featherlog: failed to send log. Status: %d", response.status_code)
        return False

    async def aclose(self) -> None:
        """Close the HTTP client if this Logger created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Logger:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
