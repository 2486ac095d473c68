"""Wallet connection providers.

The router only needs one thing from a wallet connector: the address that is
connected right now, or nothing. Connectors may answer synchronously or with
an awaitable; :func:`query_wallet` accepts both.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from personapass.core.exceptions import WalletProviderException

logger = logging.getLogger(__name__)

WalletChangeListener = Callable[[], None]


@dataclass(frozen=True)
class WalletInfo:
    """A wallet session as reported by its connector."""

    address: str
    chain_id: str = ""
    provider: str = ""
    is_connected: bool = True


class WalletConnectionProvider:
    """Base class for wallet connectors.

    Subclasses override :meth:`get_connected_wallet`. It may be a plain
    method or a coroutine function.

    Connectors that learn about account switches or reconnects (keystore
    change events in the browser) call :meth:`notify_wallet_changed`;
    interested parties register through :meth:`subscribe`.
    """

    name: str = "wallet"

    def get_connected_wallet(self) -> WalletInfo | None | Awaitable[WalletInfo | None]:
        raise NotImplementedError

    def _change_listeners(self) -> list[WalletChangeListener]:
        # Subclasses are not required to call super().__init__().
        return self.__dict__.setdefault("_wallet_change_listeners", [])

    def subscribe(self, callback: WalletChangeListener) -> Callable[[], None]:
        """Call ``callback`` whenever the connected wallet may have changed.

        Returns a function that removes the callback.
        """
        listeners = self._change_listeners()
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def notify_wallet_changed(self) -> None:
        for callback in list(self._change_listeners()):
            try:
                callback()
            except Exception:  # Intentionally broad: one bad listener must not starve the rest
                logger.exception("Wallet change listener failed")


async def query_wallet(provider: WalletConnectionProvider) -> WalletInfo | None:
    """Ask ``provider`` for its connected wallet, awaiting if needed.

    Returns None when the connector reports no usable session.
    """
    result = provider.get_connected_wallet()
    if inspect.isawaitable(result):
        result = await result
    if result is None or not result.is_connected or not result.address:
        return None
    return result


class StaticWalletProvider(WalletConnectionProvider):
    """Connector whose session is set explicitly.

    Used by server endpoints (the client declares its connected address) and
    by tests.
    """

    name = "static"

    def __init__(self, wallet: WalletInfo | str | None = None) -> None:
        self._wallet: WalletInfo | None = None
        if wallet is not None:
            self.connect(wallet)

    def connect(self, wallet: WalletInfo | str) -> None:
        if isinstance(wallet, str):
            wallet = WalletInfo(address=wallet, provider=self.name)
        self._wallet = wallet
        self.notify_wallet_changed()

    def disconnect(self) -> None:
        self._wallet = None
        self.notify_wallet_changed()

    def get_connected_wallet(self) -> WalletInfo | None:
        return self._wallet


class FirstConnectedProvider(WalletConnectionProvider):
    """Ask several connectors in order and take the first connected wallet.

    Mirrors the browser client, which checks Keplr, then Cosmostation, then
    Leap. A connector that fails is skipped; if none is connected and at
    least one failed, the failure is raised so the caller can report it
    instead of claiming the user is disconnected. Change events from any
    child connector are re-published to this provider's subscribers.
    """

    name = "first-connected"

    def __init__(self, providers: Sequence[WalletConnectionProvider]) -> None:
        self.providers = list(providers)
        for provider in self.providers:
            provider.subscribe(self.notify_wallet_changed)

    async def get_connected_wallet(self) -> WalletInfo | None:
        failures: list[str] = []
        for provider in self.providers:
            try:
                wallet = await query_wallet(provider)
            except Exception as e:  # Intentionally broad: connector SDKs raise anything
                logger.warning("Wallet connector %s failed: %s", provider.name, e)
                failures.append(f"{provider.name}: {e}")
                continue
            if wallet is not None:
                return wallet

        if failures:
            raise WalletProviderException(
                "No wallet connected and some connectors failed: " + "; ".join(failures),
                provider=self.name,
            )
        return None
