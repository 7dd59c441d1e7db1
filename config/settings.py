"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    LLM_CONFIG_PATH: str = "app_config.json"
    CHROMA_PATH: str = Field(default="data/chroma")
    EMBEDDING_MODEL: str = "all-MiniLM-L6-v2"
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    TOTAL_QUESTIONS_DEFAULT: int = Field(default=10, gt=0)
    QUESTION_TIMEOUT_S: float = Field(default=20.0, gt=0)
    HISTORY_LIMIT: int = Field(default=20, gt=0)

    DIFFICULTY_UP_THRESHOLD: float = 85.0
    DIFFICULTY_DOWN_THRESHOLD: float = 60.0
    DIFFICULTY_WINDOW: int = Field(default=2, ge=1)
    ADAPTIVE_MIN_RESPONSES: int = Field(default=2, ge=1)
    RECENT_SCORES_WINDOW: int = Field(default=3, ge=1)
    FALLBACK_SCORE: float = Field(default=50.0, ge=0.0, le=100.0)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
