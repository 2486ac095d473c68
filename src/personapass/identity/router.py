"""AuthRouter - decide which onboarding/login path a wallet should see.

Every call re-derives the verdict from the live wallet session and the
identity cache:

1. no connected wallet            -> DISCONNECTED
2. cached record for the address  -> RETURNING_USER (with its DID)
3. no cached record               -> NEW_USER
4. wallet or storage fault        -> ERROR (with a diagnostic reason)

The router performs no writes and never raises; presentation code always
receives a structured :class:`AuthRouteResult`.
"""

from __future__ import annotations

import logging

from personapass.core.logging import correlation_context
from personapass.identity.cache import IdentityCache
from personapass.identity.models import AuthRouteResult, IdentityRecord, RouteKind
from personapass.identity.storage import StorageStatus
from personapass.identity.wallet import (
    StaticWalletProvider,
    WalletConnectionProvider,
    WalletInfo,
    query_wallet,
)

logger = logging.getLogger(__name__)

REASON_DISCONNECTED = "Please connect your wallet to continue"
REASON_NEW_USER = "No PersonaPass account found. Let's create one!"
REASON_RETURNING_USER = "Welcome back!"
REASON_WALLET_ERROR = "Unable to read wallet connection. Please try again."
REASON_STORAGE_ERROR = "Unable to verify account status. Please try again."


class AuthRouter:
    """Routing engine over a wallet provider and an identity cache."""

    def __init__(self, wallet_provider: WalletConnectionProvider, cache: IdentityCache) -> None:
        self.wallet_provider = wallet_provider
        self.cache = cache

    @classmethod
    def from_address(cls, cache: IdentityCache, address: str | None) -> AuthRouter:
        """Router for callers that already know the connected address."""
        provider = StaticWalletProvider(address or None)
        return cls(provider, cache)

    async def determine_user_route(self) -> AuthRouteResult:
        """Resolve the routing verdict for the wallet connected right now."""
        with correlation_context():
            try:
                wallet = await query_wallet(self.wallet_provider)
            except Exception as e:  # Intentionally broad: any connector failure is an ERROR verdict
                logger.error("Wallet query failed: %s", e)
                return AuthRouteResult(
                    route=RouteKind.ERROR,
                    reason=f"{REASON_WALLET_ERROR} ({type(e).__name__}: {e})",
                )

            if wallet is None:
                logger.debug("No wallet connected")
                return AuthRouteResult(route=RouteKind.DISCONNECTED, reason=REASON_DISCONNECTED)

            try:
                lookup = self.cache.resolve(wallet.address)
            except Exception as e:  # Intentionally broad: custom caches may raise
                logger.error("Identity lookup for %s failed: %s", wallet.address, e)
                return AuthRouteResult(
                    route=RouteKind.ERROR,
                    reason=f"{REASON_STORAGE_ERROR} ({type(e).__name__}: {e})",
                    wallet_address=wallet.address,
                )

            if lookup.status == StorageStatus.FAULTED:
                return AuthRouteResult(
                    route=RouteKind.ERROR,
                    reason=f"{REASON_STORAGE_ERROR} ({lookup.detail})",
                    wallet_address=wallet.address,
                )

            if lookup.record is not None:
                try:
                    result = self.route_for_record(wallet, lookup.record)
                except Exception as e:  # Intentionally broad: subclasses may raise
                    logger.error("Route selection for %s failed: %s", wallet.address, e)
                    return AuthRouteResult(
                        route=RouteKind.ERROR,
                        reason=f"{REASON_STORAGE_ERROR} ({type(e).__name__}: {e})",
                        wallet_address=wallet.address,
                    )
            else:
                result = AuthRouteResult(
                    route=RouteKind.NEW_USER,
                    reason=REASON_NEW_USER,
                    wallet_address=wallet.address,
                )
            logger.info("Wallet %s routed to %s", wallet.address, result.route)
            return result

    def route_for_record(self, wallet: WalletInfo, record: IdentityRecord) -> AuthRouteResult:
        """Verdict for a wallet that has a cached identity.

        Override to add verdicts (e.g. sending inactive identities to an
        onboarding screen) once richer DID state is available.
        """
        greeting = REASON_RETURNING_USER
        if record.first_name:
            greeting = f"Welcome back, {record.first_name}!"
        return AuthRouteResult(
            route=RouteKind.RETURNING_USER,
            did=record.did,
            reason=greeting,
            wallet_address=wallet.address,
            record=record,
        )
