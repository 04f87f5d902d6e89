"""
Application settings using Pydantic.

Provides environment-based configuration loading with MAYOR_WEST_ prefix.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MAYOR_WEST_",
        extra="ignore",
    )

    # Paths
    policy_path: str = ".github/mayor-west.yml"
    repo_root: str = "."

    # Logging
    log_level: str = "WARNING"

    # Setup defaults
    default_mode: Literal["full", "minimal", "custom"] = "full"
    iteration_limit: int = Field(default=15, ge=1, le=50)
    merge_strategy: Literal["SQUASH", "MERGE", "REBASE"] = "SQUASH"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
