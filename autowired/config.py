"""
Configuration module for property autowiring.

Settings are read from environment variables prefixed with ``AUTOWIRED_``
(and an optional ``.env`` file).
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AutowiredSettings(BaseSettings):
    """Autowiring settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AUTOWIRED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"

    # Metadata cache
    cache_namespace: str = "autowired.properties"
    cache_storage_service: str = "autowired.cache_storage"
    cache_dir: Optional[str] = None  # FileStorage when set, MemoryStorage otherwise

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"


@lru_cache
def get_settings() -> AutowiredSettings:
    """Get cached settings instance."""
    return AutowiredSettings()
