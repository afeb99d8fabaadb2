"""Request logging middleware for Sitebook.

Every request gets a correlation ID (echoed from ``X-Correlation-ID`` or
freshly generated) and one completion event with its status and duration.
Requests under ``/projects/<uuid>`` also carry that project's ID on every
log event emitted while they are handled. Health probes log at debug level
so load balancer polling stays out of the INFO stream.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware

from sitebook.logging import bind_project_context, get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

_PROJECT_PATH = re.compile(r"^/projects/(?P<project_id>[0-9a-fA-F-]{36})(?:/|$)")


def project_id_from_path(path: str) -> str | None:
    """Project ID addressed by a request path, if any."""
    match = _PROJECT_PATH.match(path)
    return match.group("project_id") if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Correlation IDs, project context and timing for each request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        path = request.url.path
        project_id = project_id_from_path(path)
        if project_id is not None:
            bind_project_context(project_id)

        log = logger.debug if path.startswith("/health") else logger.info
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=_elapsed_ms(started),
                error=str(exc),
                exc_info=True,
            )
            raise
        else:
            log(
                "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=_elapsed_ms(started),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            set_correlation_id(None)
            structlog.contextvars.unbind_contextvars("project_id", "phase")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
