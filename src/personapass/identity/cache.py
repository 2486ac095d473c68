"""Identity cache - wallet address to DID record, backed by a storage slot.

This is a transitional store. It bridges the gap until PersonaChain ships a
canonical DID registry, and must never be treated as authoritative:

- one record per wallet address, last write wins, no merge, no versioning;
- records never expire, only :meth:`IdentityCache.clear` removes them;
- the whole collection is one JSON list under one storage key, so readers
  tolerate a missing key as "no records".

No public method raises. Reads fall back to "no record" and writes are
best-effort; failures are logged. Callers that need to tell an empty store
from a broken one use :meth:`IdentityCache.resolve` or
:meth:`IdentityCache.status`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from personapass.core.config import DEFAULT_STORAGE_KEY
from personapass.core.exceptions import StorageException
from personapass.identity.models import IdentityRecord
from personapass.identity.storage import MemoryStorage, StorageBackend, StorageStatus

logger = logging.getLogger(__name__)

TRANSITIONAL_NOTE = (
    "This is temporary storage. DIDs will be migrated to PersonaChain when DID modules are implemented."
)


@dataclass(frozen=True)
class CacheLookup:
    """Status-aware outcome of a cache read."""

    status: StorageStatus
    record: IdentityRecord | None = None
    detail: str = ""

    @property
    def found(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class _Snapshot:
    status: StorageStatus
    records: list[IdentityRecord]
    raw_size: int = 0
    detail: str = ""


class IdentityCache:
    """Address-keyed, overwrite-on-conflict DID cache.

    Typical workflow::

        cache = IdentityCache(FileStorage("~/.personapass"))

        # Registration flow hands over a finished record
        cache.upsert(IdentityRecord(did="did:persona:123", wallet_address="persona1abc"))

        # Routing reads it back
        record = cache.lookup("persona1abc")
    """

    def __init__(
        self,
        storage: StorageBackend | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self._storage: Any = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key

    # -- internals ----------------------------------------------------------

    def _probe(self) -> StorageStatus:
        try:
            return StorageStatus(self._storage.status())
        except Exception as e:  # Intentionally broad: a probe that blows up is a faulted medium
            logger.error("Storage capability probe failed: %s", e)
            return StorageStatus.FAULTED

    def _load(self) -> _Snapshot:
        status = self._probe()
        if status == StorageStatus.UNAVAILABLE:
            return _Snapshot(status, [], detail="no storage medium in this context")
        if status == StorageStatus.FAULTED:
            return _Snapshot(status, [], detail="storage medium is not usable")

        try:
            raw = self._storage.get_item(self.storage_key)
        except StorageException as e:
            return _Snapshot(StorageStatus.FAULTED, [], detail=e.message)
        except Exception as e:  # Intentionally broad: third-party backends
            return _Snapshot(StorageStatus.FAULTED, [], detail=f"{type(e).__name__}: {e}")

        if not raw:
            return _Snapshot(StorageStatus.AVAILABLE, [])

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            return _Snapshot(StorageStatus.FAULTED, [], len(raw.encode()), f"corrupt payload: {e}")
        if not isinstance(data, list):
            return _Snapshot(
                StorageStatus.FAULTED,
                [],
                len(raw.encode()),
                f"expected a JSON list, got {type(data).__name__}",
            )

        records: list[IdentityRecord] = []
        for index, item in enumerate(data):
            try:
                records.append(IdentityRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed identity entry %d in %s: %s", index, self.storage_key, e)
        return _Snapshot(StorageStatus.AVAILABLE, records, len(raw.encode()))

    def _save(self, records: list[IdentityRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records])
        self._storage.set_item(self.storage_key, payload)

    # -- writes -------------------------------------------------------------

    def upsert(self, record: IdentityRecord) -> None:
        """Store ``record``, replacing any record for the same wallet address.

        Best-effort: an unavailable medium drops the write, a faulted medium
        drops it too so a collection that cannot be read is never replaced by
        a partial one. Nothing is raised either way.
        """
        snapshot = self._load()
        if snapshot.status == StorageStatus.UNAVAILABLE:
            logger.debug("Identity for %s not stored: %s", record.wallet_address, snapshot.detail)
            return
        if snapshot.status == StorageStatus.FAULTED:
            logger.error(
                "Identity for %s not stored, %s is unreadable (%s); clear it to recover",
                record.wallet_address,
                self.storage_key,
                snapshot.detail,
            )
            return

        records = [r for r in snapshot.records if r.wallet_address != record.wallet_address]
        records.append(record)
        try:
            self._save(records)
        except Exception as e:  # Intentionally broad: best-effort cache write
            logger.error("Failed to store DID %s temporarily: %s", record.did, e)
            return
        logger.info("Temporarily stored DID %s for wallet %s", record.did, record.wallet_address)

    def clear(self) -> None:
        """Drop every record. Idempotent."""
        try:
            self._storage.remove_item(self.storage_key)
        except Exception as e:  # Intentionally broad: best-effort cache write
            logger.error("Failed to clear %s: %s", self.storage_key, e)
            return
        logger.info("Cleared temporary DID storage")

    # -- reads --------------------------------------------------------------

    def resolve(self, wallet_address: str) -> CacheLookup:
        """Look up ``wallet_address`` and report the medium's state alongside."""
        snapshot = self._load()
        if snapshot.status == StorageStatus.FAULTED:
            logger.warning("Identity lookup for %s hit a faulted store: %s", wallet_address, snapshot.detail)
        for record in snapshot.records:
            if record.wallet_address == wallet_address:
                return CacheLookup(snapshot.status, record, snapshot.detail)
        return CacheLookup(snapshot.status, None, snapshot.detail)

    def lookup(self, wallet_address: str) -> IdentityRecord | None:
        """Return the record for ``wallet_address``, or None."""
        return self.resolve(wallet_address).record

    def has_record(self, wallet_address: str) -> bool:
        return self.lookup(wallet_address) is not None

    def list_all(self) -> list[IdentityRecord]:
        """Every record in storage order. Diagnostics only."""
        snapshot = self._load()
        if snapshot.status == StorageStatus.FAULTED:
            logger.warning("Cannot list identities: %s", snapshot.detail)
        return list(snapshot.records)

    def status(self) -> StorageStatus:
        """Tri-state health of the cache, including payload integrity."""
        return self._load().status

    def stats(self) -> dict[str, Any]:
        snapshot = self._load()
        return {
            "count": len(snapshot.records),
            "approximate_size_bytes": snapshot.raw_size,
            "status": str(snapshot.status),
            "note": TRANSITIONAL_NOTE,
        }
