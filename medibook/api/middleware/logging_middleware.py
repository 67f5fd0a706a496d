"""
Request logging middleware.

Binds a correlation id to the logging context for the duration of each
request and writes one access line per request.
"""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from medibook.core.shared.logger import correlation_id_var

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log plus X-Correlation-ID and X-Response-Time-Ms headers."""

    EXCLUDE_PATHS: tuple[str, ...] = ("/health", "/favicon.ico")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex[:8]
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)
        quiet = request.url.path.startswith(self.EXCLUDE_PATHS)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000
            if not quiet:
                level = logging.WARNING if response.status_code >= 400 else logging.INFO
                logger.log(level, f"{request.method} {request.url.path} {response.status_code} {duration_ms:.2f}ms")
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"{request.method} {request.url.path} failed after {duration_ms:.2f}ms: {e}")
            raise
        finally:
            correlation_id_var.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        return response
