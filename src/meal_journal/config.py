"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-4o-2024-08-06"
    openai_store: bool = False
    openai_max_output_tokens: int = 1000
    image_bucket: str = "meal-images"
    max_upload_bytes: int = 10 * 1024 * 1024
    cors_origins: str = "http://localhost:3000"
    insight_ttl_seconds: int = 24 * 60 * 60
    draft_ttl_seconds: int = 24 * 60 * 60
    action_log_path: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse a comma-separated list of allowed CORS origins."""
    if raw is None:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
