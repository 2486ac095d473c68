"""Global test fixtures for the PersonaPass test suite."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from personapass.core.logging import JSONFormatter, StandardFormatter
from personapass.identity.cache import IdentityCache
from personapass.identity.models import IdentityRecord
from personapass.identity.storage import FileStorage, MemoryStorage, UnavailableStorage

# ============================================================================
# Environment
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all PERSONAPASS_ and upstream environment variables."""
    env_prefixes = ("PERSONAPASS_", "TOTP_", "LAMBDA_")
    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in env_prefixes):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_config():
    """Reset cached settings between tests."""
    import personapass.core.config as core_config
    import personapass.server.config as server_config

    core_config._config = None
    server_config._settings = None
    yield
    core_config._config = None
    server_config._settings = None


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() calls made by a test."""
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, (JSONFormatter, StandardFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


# ============================================================================
# Identity fixtures
# ============================================================================


def make_record(
    did: str = "did:persona:123",
    wallet_address: str = "0xABC",
    **overrides,
) -> IdentityRecord:
    fields = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "wallet_type": "keplr",
        "created_at": "2026-01-15T10:00:00+00:00",
        "tx_hash": "A1B2C3",
        "block_height": 1042,
    }
    fields.update(overrides)
    return IdentityRecord(did=did, wallet_address=wallet_address, **fields)


@pytest.fixture
def record_factory():
    """Factory building fully populated records."""
    return make_record


@pytest.fixture
def record() -> IdentityRecord:
    return make_record()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(memory_storage: MemoryStorage) -> IdentityCache:
    return IdentityCache(memory_storage)


@pytest.fixture
def file_cache(tmp_path: Path) -> IdentityCache:
    return IdentityCache(FileStorage(tmp_path / "store"))


@pytest.fixture
def unavailable_cache() -> IdentityCache:
    return IdentityCache(UnavailableStorage())
