"""Request logging for the control API."""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("console_server.api.audit")


def _level_for(status: int | None) -> int:
    if status is None or status >= 500:
        return logging.WARNING
    return logging.INFO


class AuditLoggerMiddleware(BaseHTTPMiddleware):
    """Log one line per HTTP request.

    Start, stop and command requests change the state of the supervised
    process, so every call is recorded with its outcome. Server errors are
    raised to WARNING so failed kills and spawns stand out.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status: int | None = None
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
            logger.log(
                _level_for(status),
                "%s %s -> %s",
                request.method,
                request.url.path,
                status if status is not None else "error",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": status,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else None,
                },
            )


__all__ = ["AuditLoggerMiddleware"]
