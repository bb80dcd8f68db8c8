from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HORIZON_", env_file=".env")

    # Upstream LLM
    upstream_url: str = "https://api.fireworks.ai/inference/v1/chat/completions"
    upstream_api_key: str = ""
    upstream_model: str = "accounts/fireworks/models/llama-v3p1-70b-instruct"
    upstream_timeout_s: float = 60.0

    # Chat
    system_prompt: str = (
        "You are an AI assistant that helps users with their notes and documents "
        "in the Horizon app."
    )

    # Public configuration
    api_url: str = ""
    environment: str = "development"
    frontend_url: str = "http://localhost:5173"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
