import logging
import traceback

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from horizonrelay.exceptions import UpstreamRequestError

logger = logging.getLogger("horizonrelay")


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "message": str(exc),
                        "type": "internal_server_error",
                        "code": 500,
                    }
                },
            )


async def upstream_request_error_handler(request: Request, exc: UpstreamRequestError):
    """Render a failed upstream initiation as a JSON error response."""
    if isinstance(exc.__cause__, httpx.TimeoutException):
        status_code, error_type = 504, "timeout"
    else:
        status_code, error_type = 502, "upstream_request_error"

    error = {"message": exc.message, "type": error_type, "code": status_code}
    if exc.status_code is not None:
        error["upstream_status"] = exc.status_code
    return JSONResponse(status_code=status_code, content={"error": error})
