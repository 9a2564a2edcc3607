from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Optional here: only the generate command talks to a model, and the
    # provider package falls back to its own environment variable.
    OPENAI_API_KEY: Optional[SecretStr] = None

    CHAT_MODEL: str = "openai:gpt-4o-mini"
    CHAT_TEMPERATURE: float = 0.1
    CHAT_MAX_TOKENS: int = 4096

    # --- Validation ---
    MAX_RESOLUTION_DEPTH: int = 64

    LOG_LEVEL: str = "WARNING"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def reset_settings_cache() -> None:
    get_settings.cache_clear()
