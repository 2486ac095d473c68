"""HTTP service for PersonaPass identity routing and TOTP provisioning."""

from .app import create_app, run
from .config import ServerSettings, get_settings
from .session import augment_token, build_session

__all__ = [
    "create_app",
    "run",
    "ServerSettings",
    "get_settings",
    "augment_token",
    "build_session",
]
