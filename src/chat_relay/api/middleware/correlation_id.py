from __future__ import annotations

import logging
import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

HEADER = "X-Request-ID"

# Client-supplied ids end up in log lines.
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_correlation_id(candidate: str | None) -> str:
    if candidate and _SAFE_ID.match(candidate):
        return candidate
    return uuid.uuid4().hex


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags every HTTP request (and its log records) with an id echoed back in ``X-Request-ID``."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = resolve_correlation_id(request.headers.get(HEADER))
        token = correlation_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_ctx.reset(token)
        response.headers[HEADER] = request_id
        return response


class CorrelationIdFilter(logging.Filter):
    """Adds ``record.correlation_id`` ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get() or "-"
        return True
