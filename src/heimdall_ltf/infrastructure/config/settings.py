"""
Runtime configuration.

Values are read from ``LTF_``-prefixed environment variables or a ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Lifecycle framework settings."""

    model_config = SettingsConfigDict(
        env_prefix="LTF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Logging ---
    log_level: str = "INFO"

    # --- Outbound HTTP ---
    http_base_url: Optional[str] = None
    http_timeout_seconds: float = 10.0

    # --- Deferred work ---
    async_max_workers: int = Field(default=4, ge=1)

    # --- Default test budgets ---
    budget_max_data_access: int = Field(default=100, ge=0)
    budget_max_mutations: int = Field(default=150, ge=0)
    budget_max_cpu_ms: float = Field(default=10000.0, ge=0)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings()
