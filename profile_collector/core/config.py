"""Configuration management for the profile collector."""

from typing import Optional, Annotated
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CollectorConfig(BaseSettings):
    """Main configuration for the profile collector."""

    model_config = SettingsConfigDict(
        env_prefix="PROFILE_COLLECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Collection
    enabled: Annotated[bool, Field(description="Collect sessions at all")] = True
    environment: Annotated[str, Field(description="Environment")] = "production"

    # Logging
    log_level: Annotated[str, Field(description="Log level")] = "INFO"

    # cProfile toggle
    profile_builtins: Annotated[bool, Field(description="Profile builtin functions")] = True
    profile_subcalls: Annotated[bool, Field(description="Record subcall statistics")] = True

    # Web sessions
    server_error_status: Annotated[
        int, Field(description="Lowest response status treated as a server error", ge=100, le=599)
    ] = 500
    force_profile_header: Annotated[
        Optional[str], Field(description="Request header that forces profiling")
    ] = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("force_profile_header")
    @classmethod
    def normalize_header(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().lower()


# Global configuration instance
config = CollectorConfig()
