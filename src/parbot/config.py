"""Configuration management for Parbot."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import EmptyChatbotNameError, ModelNotConfiguredError
from .ports import ChatType
from .routine import RoutineConfig

EMPTY_CHATBOT_NAME_ERROR = "Chat-bot name not configured. Set PARBOT_CHATBOT_USERNAME."
MODEL_NOT_CONFIGURED_ERROR = "Model not configured. Set PARBOT_MODEL (e.g., 'openai:gpt-4o-mini')."
SECONDS_PER_MINUTE = 60


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PARBOT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Bot Configuration
    chatbot_username: str = Field(default="", description="Display name of the bot in the game chat")
    chat_type_restriction: Optional[ChatType] = Field(
        default=ChatType.GLOBAL, description="Only read and post in this chat channel"
    )
    focus_lost_timeout_seconds: float = Field(
        default=120.0, description="Idle time after which the current partner is abandoned"
    )
    time_window_minutes: int = Field(default=30, description="Run time budget; zero or less runs unlimited")
    guest_token: str = Field(default="gast", description="Placeholder the backend uses for its partner")

    # Conversation Backend Configuration
    model: Optional[str] = Field(None, description="Model in provider:model format")
    api_key: Optional[str] = Field(None, description="API key for the LLM provider")
    api_base: Optional[str] = Field(None, description="Optional API base URL")
    max_tokens: int = Field(default=256, description="Maximum tokens per reply")
    system_prompt: Optional[str] = Field(None, description="Override for the backend persona prompt")

    # Filter Configuration
    profanity_wordlist: Optional[Path] = Field(None, description="Custom profanity word list")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")

    def routine_config(self) -> RoutineConfig:
        return RoutineConfig(
            chatbot_username=self.chatbot_username,
            focus_lost_timeout_seconds=self.focus_lost_timeout_seconds,
            chat_type_restriction=self.chat_type_restriction,
            guest_token=self.guest_token,
        )

    def termination_deadline(self, now: float) -> Optional[float]:
        """Epoch timestamp at which the service must end, or None when unlimited."""
        if self.time_window_minutes <= 0:
            return None
        return now + self.time_window_minutes * SECONDS_PER_MINUTE


def validate_settings(settings: Settings) -> None:
    """Raise a ConfigurationError if the bot can not start with these settings."""
    if not settings.chatbot_username.strip():
        raise EmptyChatbotNameError(EMPTY_CHATBOT_NAME_ERROR)
    if not settings.model:
        raise ModelNotConfiguredError(MODEL_NOT_CONFIGURED_ERROR)


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Args:
        overrides: Field values taking precedence over the environment

    Returns:
        Settings instance
    """
    settings = Settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings
