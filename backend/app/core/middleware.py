"""Request middleware: correlation IDs and access logging."""

import logging
import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.logging import clear_correlation_id, log_error, log_info, log_warning, set_correlation_id

logger = logging.getLogger("app.requests")

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Client-supplied IDs end up in every log line; keep them short and printable
_VALID_CORRELATION_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def resolve_correlation_id(header_value: Optional[str]) -> str:
    """Use the caller's correlation ID if it is well formed, else mint one."""
    if header_value and _VALID_CORRELATION_ID.fullmatch(header_value):
        return header_value
    return uuid.uuid4().hex


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation ID to the request and echoes it in the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with its status and duration.

    Uploads can legitimately take a long time; requests slower than
    ``slow_request_ms`` are logged at warning level so they stand out.
    """

    def __init__(
        self,
        app: ASGIApp,
        slow_request_ms: float = 10_000,
        skip_paths: tuple[str, ...] = ("/health",),
    ):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms
        self.skip_paths = skip_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            log_error(
                logger,
                "Request failed",
                exception=e,
                method=request.method,
                path=request.url.path,
                duration_ms=_elapsed_ms(started),
            )
            raise

        duration_ms = _elapsed_ms(started)
        log = log_warning if duration_ms >= self.slow_request_ms else log_info
        log(
            logger,
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            request_bytes=request.headers.get("content-length"),
        )
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
