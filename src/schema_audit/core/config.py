"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VERSION_FORMAT = "%Y%m%d%H%M%S"


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Prefix: SCHEMA_AUDIT_
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEMA_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (SQLAlchemy)
    database_url: str = Field(
        default="sqlite:///./schema_audit.db",
        description="SQLAlchemy database URL holding the audited schema and the ledger",
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo SQL statements (for debugging)",
    )

    # Ledger
    version_format: str = Field(
        default=DEFAULT_VERSION_FORMAT,
        description="strftime format for version labels (second precision)",
    )

    # Logging (level comes from CLI verbosity)
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
