"""Request ID middleware.

Takes the caller's ``X-Request-ID`` or a fresh UUID4, exposes it on
``request.state.request_id`` and to the JSON log formatter for the duration
of the request, and echoes it in the ``X-Request-ID`` response header.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from corsrelay.logging_config import current_request_id

logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags each request and its log lines with a request ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = current_request_id.set(request_id)
        started = time.monotonic()
        try:
            response: Response = await call_next(request)
            logger.debug(
                "%s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={
                    "status_code": response.status_code,
                    "duration_ms": round((time.monotonic() - started) * 1000, 1),
                },
            )
        finally:
            current_request_id.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response
