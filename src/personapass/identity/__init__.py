"""Wallet-to-DID identity resolution and routing.

Key concepts:
- **IdentityRecord**: a cached binding of one wallet address to one DID.
- **IdentityCache**: transitional, storage-backed store of those bindings.
- **AuthRouter**: turns "which wallet is connected" plus the cache into a
  routing verdict (NEW_USER, RETURNING_USER, DISCONNECTED, ERROR).
- **WalletDIDRecognition**: async load/refresh/error lifecycle for UI code.

Storage is pluggable through :class:`StorageBackend`; the same cache logic
runs over memory, files, or no medium at all.
"""

from personapass.identity.cache import CacheLookup, IdentityCache
from personapass.identity.models import AuthRouteResult, IdentityRecord, RouteKind
from personapass.identity.recognition import RecognitionState, WalletDIDRecognition
from personapass.identity.router import AuthRouter
from personapass.identity.storage import (
    FileStorage,
    MemoryStorage,
    StorageBackend,
    StorageStatus,
    UnavailableStorage,
    storage_from_config,
)
from personapass.identity.wallet import (
    FirstConnectedProvider,
    StaticWalletProvider,
    WalletConnectionProvider,
    WalletInfo,
)

__all__ = [
    "AuthRouteResult",
    "AuthRouter",
    "CacheLookup",
    "FileStorage",
    "FirstConnectedProvider",
    "IdentityCache",
    "IdentityRecord",
    "MemoryStorage",
    "RecognitionState",
    "RouteKind",
    "StaticWalletProvider",
    "StorageBackend",
    "StorageStatus",
    "UnavailableStorage",
    "WalletConnectionProvider",
    "WalletDIDRecognition",
    "WalletInfo",
    "storage_from_config",
]
