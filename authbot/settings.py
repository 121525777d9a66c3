from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Bot
    bot_token: str = Field(..., min_length=1)
    telegram_api_url: str = "https://api.telegram.org"
    bot_autostart: bool = True
    poll_timeout_seconds: int = 30
    brand_name: str = "Viloyat Taxi"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/authbot"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    redis_url: str = "redis://redis:6379/0"

    # Codes / policies
    code_ttl_seconds: int = 20
    code_single_use: bool = False
    instructions_flag_ttl_seconds: int = 30 * 24 * 3600

    # Chat API retries
    chat_retry_attempts: int = 3
    chat_retry_base_seconds: float = 0.5
    chat_retry_max_delay_seconds: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once; a missing BOT_TOKEN raises here and aborts startup."""
    return Settings()
