import logging
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, Request, Response

from horizonrelay import __version__
from horizonrelay.config import Settings, get_settings
from horizonrelay.models.health import HealthResponse, PublicConfigResponse, StatusResponse

logger = logging.getLogger("horizonrelay")

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request, settings: Settings = Depends(get_settings)
) -> HealthResponse:
    upstream_reachable = False
    http_client = getattr(request.app.state, "http_client", None)
    if http_client is not None:
        headers = {}
        if settings.upstream_api_key:
            headers["Authorization"] = f"Bearer {settings.upstream_api_key}"
        try:
            resp = await http_client.get(settings.upstream_url, headers=headers, timeout=3.0)
            upstream_reachable = resp.status_code < 500
        except httpx.HTTPError as exc:
            logger.debug("Upstream health check failed: %s", exc)

    return HealthResponse(
        status="ok",
        version=__version__,
        upstream_reachable=upstream_reachable,
        upstream_configured=bool(settings.upstream_api_key),
    )


@router.get("/status", response_model=StatusResponse)
async def status() -> StatusResponse:
    return StatusResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
    )


@router.get("/config", response_model=PublicConfigResponse)
async def public_config(
    response: Response, settings: Settings = Depends(get_settings)
) -> PublicConfigResponse:
    """Non-sensitive configuration for the frontend."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return PublicConfigResponse(api_url=settings.api_url, environment=settings.environment)
