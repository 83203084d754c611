"""Runtime settings, read from ``CHESSCORE_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHESSCORE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Default engine depth for engine moves and searches
    search_depth: int = Field(default=3, ge=1)
    # Hard ceiling on caller-requested depth; search has no time cutoff
    max_search_depth: int = Field(default=8, ge=1)
    # Hard ceiling on /api/perft depth
    max_perft_depth: int = Field(default=4, ge=0)
    # Side the engine plays in new games
    ai_color: Literal["w", "b"] = "b"

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
