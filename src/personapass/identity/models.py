"""Identity models for wallet-to-DID resolution.

:class:`IdentityRecord` is the unit the identity cache persists: one record
per wallet address, carrying the DID the registration flow minted for it and
the on-chain event that registration produced.

:class:`AuthRouteResult` is the verdict the router hands to presentation
code. It is recomputed on every call and never persisted.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# IdentityRecord
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IdentityRecord:
    """A cached binding of a wallet address to a DID.

    Attributes:
        did: Decentralized identifier. Opaque here: stored and matched, never parsed.
        wallet_address: Natural key. At most one live record per address.
        first_name: Display metadata.
        last_name: Display metadata.
        wallet_type: Connector that produced the binding (``"keplr"``, ``"leap"``, ...).
        created_at: ISO-8601 timestamp, set once by the registration flow.
        tx_hash: Hash of the registration transaction.
        block_height: Height of the block holding that transaction.
    """

    did: str
    wallet_address: str
    first_name: str = ""
    last_name: str = ""
    wallet_type: str = ""
    created_at: str = ""
    tx_hash: str = ""
    block_height: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the persisted layout."""
        return {
            "did": self.did,
            "walletAddress": self.wallet_address,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "walletType": self.wallet_type,
            "createdAt": self.created_at,
            "txHash": self.tx_hash,
            "blockHeight": self.block_height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityRecord:
        """Rebuild a record from its persisted form.

        Raises:
            KeyError: If ``did`` or ``walletAddress`` is missing.
        """
        return cls(
            did=data["did"],
            wallet_address=data["walletAddress"],
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            wallet_type=data.get("walletType", ""),
            created_at=data.get("createdAt", ""),
            tx_hash=data.get("txHash", ""),
            block_height=int(data.get("blockHeight") or 0),
        )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ---------------------------------------------------------------------------
# Routing verdicts
# ---------------------------------------------------------------------------


class RouteKind(enum.StrEnum):
    """Which onboarding/login path presentation code should show.

    Subclasses of :class:`~personapass.identity.router.AuthRouter` may emit
    additional string verdicts; consumers should treat unknown values as
    "stay on the current screen".
    """

    NEW_USER = "new_user"
    RETURNING_USER = "returning_user"
    DISCONNECTED = "disconnected"
    ERROR = "error"


@dataclass(frozen=True)
class AuthRouteResult:
    """Routing verdict for the wallet connected at call time."""

    route: RouteKind | str
    did: str | None = None
    reason: str = ""
    wallet_address: str | None = None
    record: IdentityRecord | None = None

    @property
    def is_error(self) -> bool:
        return self.route == RouteKind.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "route": str(self.route),
            "did": self.did,
            "reason": self.reason,
            "wallet_address": self.wallet_address,
            "record": self.record.to_dict() if self.record else None,
        }
