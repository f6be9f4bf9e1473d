"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    db_path: str = Field(default="state/nerdfeed.db", validation_alias="NERDFEED_DB_PATH")
    config_path: str | None = Field(default=None, validation_alias="NERDFEED_CONFIG")
    openrouter_api_key: str | None = Field(
        default=None, validation_alias="OPENROUTER_API_KEY"
    )
    openrouter_model: str = Field(
        default="anthropic/claude-3.5-sonnet", validation_alias="OPENROUTER_MODEL"
    )
    openrouter_embedding_model: str = Field(
        default="mistralai/mistral-embed-2312",
        validation_alias="OPENROUTER_EMBEDDING_MODEL",
    )
    telegram_bot_token: str | None = Field(
        default=None, validation_alias="TELEGRAM_BOT_TOKEN"
    )
    telegram_chat_id: str | None = Field(default=None, validation_alias="TELEGRAM_CHAT_ID")


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
