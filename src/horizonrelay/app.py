import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from horizonrelay import __version__
from horizonrelay.config import get_settings
from horizonrelay.exceptions import UpstreamRequestError
from horizonrelay.middleware.error_handler import (
    ErrorHandlerMiddleware,
    upstream_request_error_handler,
)
from horizonrelay.middleware.request_timer import RequestTimerMiddleware
from horizonrelay.routes import chat, health

logger = logging.getLogger("horizonrelay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    # HTTP client for upstream LLM
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.upstream_timeout_s),
    )

    logger.info(
        "Horizon relay v%s started | upstream=%s | model=%s",
        __version__,
        settings.upstream_url,
        settings.upstream_model,
    )

    yield

    # Shutdown
    await app.state.http_client.aclose()
    logger.info("Horizon relay shutdown complete")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Horizon Relay",
        description="Chat relay normalizing upstream LLM event streams into SSE",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestTimerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(UpstreamRequestError, upstream_request_error_handler)

    app.include_router(health.router)
    app.include_router(chat.router)

    return app
