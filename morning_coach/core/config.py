"""Application configuration."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"

    # Database (log/audit store)
    database_url: str

    # Coach voice and listening behaviour
    coach_voice: str = "Google.en-US-Neural2-I"
    speech_timeout: str = "auto"
    gather_timeout: int = 8
    fallback_gather_timeout: int = 5
    base_url: Optional[str] = None

    # IANA zone for the caller's day: greeting hour and "rest of today"
    timezone: str = "UTC"

    # Notion (tasks and habits)
    notion_api_key: Optional[str] = None
    notion_tasks_db_id: Optional[str] = None
    notion_habits_db_id: Optional[str] = None

    # Google Calendar
    google_calendar_access_token: Optional[str] = None
    google_calendar_id: str = "primary"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
