from __future__ import annotations

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("horizonrelay.metrics")


class RequestTimerMiddleware(BaseHTTPMiddleware):
    """Adds an X-Horizon-Latency-Ms header with the time until the response starts."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.monotonic()

        response = await call_next(request)

        elapsed_ms = (time.monotonic() - start) * 1000
        response.headers["X-Horizon-Latency-Ms"] = f"{elapsed_ms:.1f}"
        logger.debug("%s %s -> %d in %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response
