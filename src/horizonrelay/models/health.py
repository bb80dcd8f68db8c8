from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    upstream_reachable: bool = False
    upstream_configured: bool = False


class StatusResponse(BaseModel):
    status: str = "ok"
    message: str = "Horizon API is running"
    timestamp: str
    version: str


class PublicConfigResponse(BaseModel):
    api_url: str = Field(serialization_alias="apiUrl")
    environment: str
