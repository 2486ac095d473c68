"""Core configuration - centralized config for the personapass package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from personapass.core.config import get_config
    config = get_config()

    # Access settings
    storage_dir = config.storage_dir
    log_level = config.log_level
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Storage key shared with the browser client's localStorage slot.
DEFAULT_STORAGE_KEY = "personapass_temp_dids"


class CoreSettings(BaseSettings):
    """Core configuration settings for PersonaPass.

    Settings can be configured via environment variables with the
    PERSONAPASS_ prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="PERSONAPASS_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="PERSONAPASS_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="PERSONAPASS_LOG_FILE",
    )

    # ==========================================================================
    # IDENTITY CACHE SETTINGS
    # ==========================================================================

    storage_backend: str = Field(
        default="file",
        description="Identity cache medium: 'file', 'memory' or 'none'",
        validation_alias="PERSONAPASS_STORAGE_BACKEND",
    )
    storage_dir: Path = Field(
        default=Path.home() / ".personapass",
        description="Directory holding file-backed storage slots",
        validation_alias="PERSONAPASS_STORAGE_DIR",
    )
    storage_key: str = Field(
        default=DEFAULT_STORAGE_KEY,
        description="Named slot the identity cache persists under",
        validation_alias="PERSONAPASS_STORAGE_KEY",
    )


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: CoreSettings | None = None


def get_config() -> CoreSettings:
    """Get the global configuration instance.

    Returns:
        The singleton CoreSettings instance.
    """
    global _config
    if _config is None:
        _config = CoreSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
