"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str | None = None
    sqlite_fallback_url: str = "sqlite:///./route_planner.db"

    # POI catalog
    poi_service_url: str = "http://localhost:8082/api/v1/pois"
    poi_timeout_ms: int = 2000
    poi_retry_count: int = 1
    poi_retry_jitter_min_ms: int = 200
    poi_retry_jitter_max_ms: int = 500

    # Circuit breaker
    poi_breaker_failures: int = 5
    poi_breaker_window_sec: int = 60
    poi_breaker_half_open_sec: int = 30

    # Route shape
    min_days: int = 1
    max_days: int = 30
    max_name_length: int = 255
    max_description_length: int = 500

    # Optimizer
    exhaustive_search_limit: int = 8

    # Timing (minutes / hours)
    default_visit_minutes: int = 60
    default_day_start_hour: int = 9
    default_day_hours: int = 8
    default_day_end_hour: int = 18

    # Read cache TTL (seconds, 0 disables)
    route_cache_ttl_seconds: int = 0

    # Suggestions
    suggestion_fetch_limit: int = 100


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
