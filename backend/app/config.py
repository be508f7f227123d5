"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process

Design Decisions:
    - Defaults provided for all non-secret settings so docker-compose works as-is
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://relief:relief@db:5432/relief"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic (generative text + image verification)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_model: str = "claude-haiku-4-5-20251001"
    anthropic_max_tokens: int = 1024
    anthropic_timeout_seconds: int = 120

    # Mapbox geocoding
    mapbox_api_key: str = ""
    mapbox_base_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"

    # Bluesky social search
    bluesky_service: str = "https://bsky.social"
    bluesky_identifier: str = ""
    bluesky_password: str = ""
    social_search_limit: int = 10

    # Overpass places lookup
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    hospital_radius_m: int = 5000
    hospital_limit: int = 5

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # Cache
    cache_ttl_seconds: int = 3600

    # Realtime
    ws_max_pending_events: int = 256

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
