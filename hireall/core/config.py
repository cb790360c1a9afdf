"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB (document store for jobs, sponsors, users, ...)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "hireall"

    # AI provider (any OpenAI-compatible endpoint)
    ai_api_key: str = ""
    ai_base_url: str = "https://api.deepseek.com/v1"
    ai_model: str = "deepseek-chat"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440
    session_cookie_name: str = "__session"

    # App
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "https://hireall.app",
        "https://www.hireall.app",
    ]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def ai_enabled(self) -> bool:
        """AI features need an API key; without one we fall back to templates."""
        return bool(self.ai_api_key)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
