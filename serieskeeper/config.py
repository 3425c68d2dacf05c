from __future__ import annotations

from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    app_name: str = "SeriesKeeper"
    app_version: str = "1.0.0"
    # Default to a local postgres database if not set in env
    database_url: str = "postgresql+asyncpg://localhost/series"
    # echo=True will log SQL queries, helpful for debugging
    database_echo: bool = False

    # Logging
    log_file: str = "server.log"
    log_level: str = "INFO"

    # Matcher used by scene validation: plain substring or whole-word/phrase
    content_scanner: Literal["substring", "word"] = "substring"
    default_content_type: Literal["dialogue", "internal_thought", "narration"] = "dialogue"

    # Hard limits on inbound tool calls
    max_message_bytes: int = 65_536  # 64 KB, checked before JSON parsing

    # REST knowledge routes require x-series-id (header) or series_id (query)
    require_series_header: bool = True

    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

@lru_cache
def get_settings():
    return Settings()
