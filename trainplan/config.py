from __future__ import annotations

import logging
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Hosted backend (REST interface of the relational store)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    # Server-side function that replaces a routine's exercises in one transaction
    SUPABASE_REPLACE_RPC: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Routine editor defaults and bounds
    DEFAULT_SETS: int = 3
    DEFAULT_REPS: int = 10
    DEFAULT_REST_SECONDS: int = 90
    REST_MIN_SECONDS: int = 30
    REST_MAX_SECONDS: int = 600


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


def configure_logging(settings: Settings | None = None) -> None:
    s = settings or get_settings()
    level = getattr(logging, s.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
