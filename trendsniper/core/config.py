from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    telegram_bot_token: str = ""
    log_level: str = "INFO"
    drop_pending_updates: bool = True

    # Wizard state lives in redis when configured, otherwise in process memory.
    redis_url: str | None = None
    wizard_ttl_sec: int = 900

    mock_latency_ms: int = 300

    search_timeout_sec: float = 5.0
    search_breaker_threshold: int = 3
    search_breaker_cooldown_sec: int = 30
    search_confidence_threshold: float = 0.5
    search_page_size: int = 5

    alerts_per_watchlist_limit: int = 3
    discovery_alerts_limit: int = 5
    indicator_selection_limit: int = 3

    discovery_page_size: int = 5
    discovery_refresh_minutes: int = 15


@lru_cache
def get_settings() -> Settings:
    return Settings()
