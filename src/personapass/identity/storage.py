"""Storage media for the identity cache.

A storage backend is a named-slot key/value medium with the same shape as a
browser's ``localStorage``: ``get_item`` / ``set_item`` / ``remove_item`` on
string values. The identity cache only ever uses a single slot.

Every backend also answers a capability probe, :meth:`StorageBackend.status`,
with one of three states:

- ``AVAILABLE``: reads and writes are expected to work.
- ``UNAVAILABLE``: there is no medium in this execution context (e.g. a
  server render without ``localStorage``). Reads mean "no records", writes
  are dropped.
- ``FAULTED``: a medium exists but cannot be used. Callers must not confuse
  this with an empty store.

Backends raise :class:`~personapass.core.exceptions.StorageException` when an
operation on an available medium fails.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from personapass.core.config import CoreSettings, get_config
from personapass.core.exceptions import ConfigException, StorageException

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class StorageStatus(enum.StrEnum):
    """Capability of a storage medium in the current execution context."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    FAULTED = "faulted"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class StorageBackend(Protocol):
    """Abstract named-slot storage medium."""

    def status(self) -> StorageStatus: ...
    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# In-memory medium (default / tests)
# ---------------------------------------------------------------------------


class MemoryStorage:
    """Process-local medium. Survives nothing, useful everywhere."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def status(self) -> StorageStatus:
        return StorageStatus.AVAILABLE

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class UnavailableStorage:
    """Stand-in for an execution context with no persistence medium."""

    def status(self) -> StorageStatus:
        return StorageStatus.UNAVAILABLE

    def get_item(self, key: str) -> str | None:
        return None

    def set_item(self, key: str, value: str) -> None:
        logger.debug("Dropping write to %s: no storage medium", key)

    def remove_item(self, key: str) -> None:
        return None


# ---------------------------------------------------------------------------
# File medium
# ---------------------------------------------------------------------------


class FileStorage:
    """One JSON file per slot inside a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so a reader sees either the old or the new
    payload, never a torn one.
    """

    def __init__(self, directory: Path | str, create: bool = True) -> None:
        self.directory = Path(directory).expanduser()
        if create:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning("Could not create storage directory %s: %s", self.directory, e)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def status(self) -> StorageStatus:
        if not self.directory.exists():
            return StorageStatus.UNAVAILABLE
        if not self.directory.is_dir():
            return StorageStatus.FAULTED
        if not os.access(self.directory, os.R_OK | os.W_OK | os.X_OK):
            return StorageStatus.FAULTED
        return StorageStatus.AVAILABLE

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageException(f"Cannot read {path}: {e}", key=key) from e

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageException(f"Cannot write {path}: {e}", key=key) from e

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageException(f"Cannot remove {path}: {e}", key=key) from e


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def storage_from_config(config: CoreSettings | None = None) -> StorageBackend:
    """Build the storage backend selected by ``PERSONAPASS_STORAGE_BACKEND``.

    Raises:
        ConfigException: If the backend name is not recognised.
    """
    config = config or get_config()
    backend = config.storage_backend.lower()
    if backend == "file":
        return FileStorage(config.storage_dir)
    if backend == "memory":
        return MemoryStorage()
    if backend == "none":
        return UnavailableStorage()
    raise ConfigException(
        f"Unknown storage backend {config.storage_backend!r} (expected 'file', 'memory' or 'none')",
        missing_vars=["PERSONAPASS_STORAGE_BACKEND"],
    )
