"""Application configuration using Pydantic settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Telegram
    TELEGRAM_BOT_TOKEN: str
    TELEGRAM_API_BASE: str = "https://api.telegram.org"

    # LLM Configuration
    LLM_PROVIDER: str = "openai"  # openai, anthropic, openai_compatible
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = "http://127.0.0.1:8000/v1"  # For openai_compatible
    LLM_TEMPERATURE: float = 0.5
    LLM_MAX_TOKENS: int = 3500
    LLM_TIMEOUT: float = 300.0

    # Subscriber database
    DB_PATH: str = "subscribers.db"

    # Session management
    SESSION_SHARDS: int = 64
    SESSION_IDLE_TTL: int = 3600
    SESSION_SWEEP_INTERVAL: int = 300
    MIN_MESSAGE_LENGTH: int = 3
    MAX_CONCURRENT_UPDATES: int = 0  # 0 = unbounded

    # Optional API
    API_ENABLED: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    @property
    def telegram_base_url(self) -> str:
        """Bot API base URL including the token."""
        return f"{self.TELEGRAM_API_BASE}/bot{self.TELEGRAM_BOT_TOKEN}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience alias
settings = get_settings()
