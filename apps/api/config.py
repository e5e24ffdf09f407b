"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis (result cache + rate limits; both fall back to in-process state)
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Upstream catalogs. Missing keys are not fatal: calls go out unauthenticated.
    BOOKS_API_KEY: str = ""
    YOUTUBE_API_KEY: str = ""
    NLB_API_KEY: str = ""
    NLB_APP_ID: str = ""
    NLB_APP_CODE: str = ""

    # Upstream call behaviour
    UPSTREAM_TIMEOUT_SECONDS: float = 8.0
    NLB_MIN_REQUEST_INTERVAL_SECONDS: float = 1.1

    # Caller-side caching of final page results
    RESULT_CACHE_ENABLED: bool = True
    RESULT_CACHE_TTL_SECONDS: int = 600
    CACHE_CONTROL_MAX_AGE: int = 60

    # Per-client quotas on the search endpoints
    BOOKS_RATE_LIMIT_PER_HOUR: int = 1200
    VIDEOS_RATE_LIMIT_PER_HOUR: int = 600
    LIBRARY_RATE_LIMIT_PER_HOUR: int = 300

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


def missing_catalog_keys() -> List[str]:
    """Return the names of upstream catalog keys that are not configured."""
    missing = []
    for name in ("BOOKS_API_KEY", "YOUTUBE_API_KEY", "NLB_API_KEY"):
        if not (getattr(settings, name, "") or "").strip():
            missing.append(name)
    return missing
