"""SQL entity graph configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from environment variables with SQLGRAPH_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SQLGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Logging
    log_level: str = "WARNING"
    structured_logging: bool = False

    # Graph construction
    strict_operator_types: bool = True

    # Rendering tokens
    relocatable_schema_token: str = "@extname@"
    module_pathname_token: str = "MODULE_PATHNAME"
    libdir_token: str = "$libdir"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v!r}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings (strict_operator_types=%s)", settings.strict_operator_types)

    return settings
