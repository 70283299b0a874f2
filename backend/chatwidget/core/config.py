"""
Application configuration using Pydantic Settings.

Values come from environment variables or a local .env file.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Remote question-answering backend
    # ===========================================
    # Public ask/history API (ask_public/, messages_public/{session_id})
    BACKEND_API_URL: str = "http://localhost:8000"

    # RAG backend receiving like/dislike feedback
    RAG_BACKEND_URL: str = "http://localhost:8000"

    # Used when the widget does not send a company_id / langue
    DEFAULT_COMPANY_ID: str = "d6738c8d-7e4d-4406-a298-8a640620879c"
    DEFAULT_LANGUAGE: str = "français"

    ASK_TIMEOUT_SECONDS: float = 120.0
    HISTORY_TIMEOUT_SECONDS: float = 15.0
    FEEDBACK_TIMEOUT_SECONDS: float = 5.0

    # ===========================================
    # Client library (widget side)
    # ===========================================
    # Base URL of this relay as seen by the widget
    RELAY_BASE_URL: str = "http://localhost:3000"

    # Sessions kept in local storage after pruning
    MAX_STORED_SESSIONS: int = 10

    # SQLite file backing the key-value storage
    SESSION_DATABASE_URL: str = "sqlite:///./chatwidget.db"

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    ALLOWED_ORIGINS: List[str] = Field(default=["*"])

    # ===========================================
    # Messenger Platform
    # ===========================================
    MESSENGER_VERIFY_TOKEN: str = ""
    MESSENGER_APP_SECRET: str = ""
    MESSENGER_PAGE_TOKEN: str = ""
    MESSENGER_COMPANY_ID: str = "b28cfe88-807b-49de-97f7-fd974cfd0d17"
    MESSENGER_GRAPH_API_URL: str = "https://graph.facebook.com/v20.0"
    MESSENGER_DEDUP_TTL_SECONDS: float = 300.0
    MESSENGER_THROTTLE_SECONDS: float = 2.0
    MESSENGER_REPLY_DELAY_SECONDS: float = 1.0
    MESSENGER_MAX_TEXT_LENGTH: int = 1900


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
