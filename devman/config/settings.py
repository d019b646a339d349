"""
Application settings using Pydantic.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="DEVMAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Credential management
    credential_path: str = "data/credentials"

    # SNMP defaults
    snmp_timeout: int = 5
    snmp_retries: int = 2
    snmp_port: int = 161
    snmp_max_repetitions: int = 0  # 0 = agent advertises none
    snmp_walk_max_rows: int | None = None

    # CLI
    cli_teardown_pause: float = 1.0

    # Web API / fingerprinting
    http_timeout: int = 15

    # Per-device response cache
    cache_ttl: int = 10

    default_timezone: str = "Europe/Tallinn"

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
