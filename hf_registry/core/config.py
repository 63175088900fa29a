from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./hf_registry.db"

    # Redis
    redis_url: str | None = None
    stats_cache_ttl_seconds: int = 60

    # Clinical rules
    fiscal_year_start_month: int = Field(default=10, ge=1, le=12)
    readmission_window_days: int = Field(default=30, ge=1)

    # Patient list
    items_per_page: int = Field(default=50, ge=1)

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
