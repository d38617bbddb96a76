"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Telegram Bot API
    telegram_bot_token: str = ""  # From @BotFather
    telegram_parse_mode: Literal["Markdown", "MarkdownV2", "HTML"] = "Markdown"
    telegram_timeout_seconds: float = 20.0

    # Doma blockchain registry (GraphQL)
    doma_graphql_endpoint: str = "https://api-testnet.doma.xyz/graphql"
    doma_api_key: str = ""
    doma_timeout_seconds: float = 10.0

    # Event monitoring
    event_check_interval_seconds: int = 30
    dedupe_events: bool = False  # False = alert on the latest items every tick

    # Chat that receives engine stats at startup (0 = nobody)
    admin_user_id: int = 0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Path | None = None

    @property
    def has_telegram(self) -> bool:
        """Check if the Telegram notifier is configured."""
        return bool(self.telegram_bot_token)

    @property
    def has_doma_api_key(self) -> bool:
        """Check if a Doma API key is configured."""
        return bool(self.doma_api_key)


# Global settings instance
settings = Settings()
