# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Server configuration using pydantic-settings."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version

from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

from personapass.core.config import CoreSettings

logger = logging.getLogger(__name__)


def get_package_version() -> str:
    """Get the package version from installed metadata.

    Falls back to a dev marker when running from a source checkout.
    """
    try:
        return version("personapass-identity")
    except PackageNotFoundError:
        return "0.0.0-dev"


class ServerSettings(CoreSettings):
    """Configuration for the PersonaPass identity HTTP service.

    Inherits core settings (logging, identity cache storage) and adds the
    HTTP listener, CORS, and the TOTP provisioning upstream.

    Settings can be configured via environment variables with PERSONAPASS_
    prefix. The upstream URLs and API key also accept the names the browser
    deployment already uses (TOTP_SETUP_LAMBDA_URL, TOTP_VERIFY_LAMBDA_URL,
    LAMBDA_API_KEY).
    """

    model_config = SettingsConfigDict(
        env_prefix="PERSONAPASS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="Host to bind to")
    port: int = Field(default=8430, description="Port to bind to")

    server_name: str = Field(default="personapass-identity", description="Service name reported by /health")
    server_version: str = Field(default_factory=get_package_version, description="Server version")

    # CORS settings
    allowed_origins: list[str] = Field(
        default=[],
        description="Allowed CORS origins. Empty = same-origin only. Set to ['*'] for development.",
    )

    # TOTP provisioning upstream
    totp_setup_url: str | None = Field(
        default=None,
        description="Remote function that provisions TOTP secrets",
        validation_alias=AliasChoices("PERSONAPASS_TOTP_SETUP_URL", "TOTP_SETUP_LAMBDA_URL"),
    )
    totp_verify_url: str | None = Field(
        default=None,
        description="Remote function that verifies TOTP codes",
        validation_alias=AliasChoices("PERSONAPASS_TOTP_VERIFY_URL", "TOTP_VERIFY_LAMBDA_URL"),
    )
    provisioning_api_key: str = Field(
        default="dev-key",
        description="Bearer key sent to the provisioning upstream",
        validation_alias=AliasChoices("PERSONAPASS_PROVISIONING_API_KEY", "LAMBDA_API_KEY"),
    )
    provisioning_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for provisioning upstream calls",
    )


_settings: ServerSettings | None = None


def get_settings() -> ServerSettings:
    """Get the global server settings instance."""
    global _settings
    if _settings is None:
        _settings = ServerSettings()
        if _settings.provisioning_api_key == "dev-key" and _settings.totp_setup_url:
            logger.warning("TOTP upstream configured with the default 'dev-key'; set LAMBDA_API_KEY")
    return _settings
