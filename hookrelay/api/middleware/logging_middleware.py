"""
Request logging middleware.

One line in, one line out per request, tagged with a correlation id.
Ingestion calls are tagged with their webhook id instead of the raw path;
their bodies and headers (signatures, API keys) are never logged.
"""

import logging
import re
import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
_INGEST_PATH = re.compile(r"^/webhook/(?P<webhook_id>[^/]+)/?$")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    HTTP middleware for request/response logging.

    Echoes the correlation id in `X-Correlation-ID` and the handling time
    in `X-Response-Time-Ms`.
    """

    # Polled by load balancers; not worth a log line
    QUIET_PATHS: tuple[str, ...] = ("/health",)

    @staticmethod
    def describe(request: Request) -> str:
        """Log label for a request: `ingest <id>` for webhook calls, else the path."""
        match = _INGEST_PATH.match(request.url.path)
        if match:
            return f"{request.method} ingest webhook={match.group('webhook_id')}"
        return f"{request.method} {request.url.path}"

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex[:8]
        request.state.correlation_id = correlation_id

        quiet = request.url.path in self.QUIET_PATHS
        label = self.describe(request)
        start_time = time.perf_counter()

        if not quiet:
            logger.info(f"[{correlation_id}] --> {label}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"[{correlation_id}] <-- {label} ERROR in {duration_ms:.2f}ms: {e}")
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not quiet:
            log_level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(log_level, f"[{correlation_id}] <-- {label} {response.status_code} in {duration_ms:.2f}ms")

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        return response
