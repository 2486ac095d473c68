"""PersonaPass core - configuration, logging and exceptions."""

from .config import CoreSettings, clear_config_cache, get_config
from .exceptions import (
    ConfigException,
    PersonaPassException,
    ProvisioningException,
    StorageException,
    ValidationException,
    WalletProviderException,
)

__all__ = [
    "CoreSettings",
    "get_config",
    "clear_config_cache",
    "PersonaPassException",
    "StorageException",
    "WalletProviderException",
    "ValidationException",
    "ConfigException",
    "ProvisioningException",
]
