from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Security
    secret_key: str = "changeme"  # override in .env
    access_token_expire_minutes: int = 480
    terminal_api_key: str | None = None

    # Database
    database_url: str

    # Redis
    redis_url: str | None = None
    stock_cache_ttl_seconds: int = 30

    # Reservations
    reservation_ttl_minutes: int = 24 * 60
    reservation_clamp_quantities: bool = False
    pickup_code_length: int = 6
    pickup_code_fallback_length: int = 8
    pickup_code_max_attempts: int = 5

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
