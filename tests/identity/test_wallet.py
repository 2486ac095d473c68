"""Tests for wallet connection providers."""

from __future__ import annotations

import pytest

from personapass.core.exceptions import WalletProviderException
from personapass.identity.wallet import (
    FirstConnectedProvider,
    StaticWalletProvider,
    WalletConnectionProvider,
    WalletInfo,
    query_wallet,
)


class AsyncProvider(WalletConnectionProvider):
    def __init__(self, name: str, wallet: WalletInfo | None = None, error: Exception | None = None):
        self.name = name
        self.wallet = wallet
        self.error = error
        self.calls = 0

    async def get_connected_wallet(self) -> WalletInfo | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.wallet


class TestQueryWallet:
    async def test_sync_provider(self):
        provider = StaticWalletProvider(WalletInfo(address="persona1abc", provider="keplr"))
        wallet = await query_wallet(provider)
        assert wallet.address == "persona1abc"

    async def test_async_provider(self):
        provider = AsyncProvider("leap", WalletInfo(address="persona1def"))
        wallet = await query_wallet(provider)
        assert wallet.address == "persona1def"

    @pytest.mark.parametrize(
        "wallet",
        [None, WalletInfo(address=""), WalletInfo(address="persona1abc", is_connected=False)],
    )
    async def test_unusable_sessions_are_none(self, wallet):
        assert await query_wallet(StaticWalletProvider(wallet)) is None

    async def test_errors_propagate(self):
        with pytest.raises(RuntimeError):
            await query_wallet(AsyncProvider("keplr", error=RuntimeError("locked")))


class TestStaticWalletProvider:
    def test_connect_with_address(self):
        provider = StaticWalletProvider()
        assert provider.get_connected_wallet() is None
        provider.connect("persona1abc")
        wallet = provider.get_connected_wallet()
        assert wallet.address == "persona1abc"
        assert wallet.provider == "static"

    def test_disconnect(self):
        provider = StaticWalletProvider("persona1abc")
        provider.disconnect()
        assert provider.get_connected_wallet() is None

    def test_base_provider_is_abstract(self):
        with pytest.raises(NotImplementedError):
            WalletConnectionProvider().get_connected_wallet()


class TestFirstConnectedProvider:
    async def test_first_connected_wins(self):
        keplr = AsyncProvider("keplr")
        cosmostation = AsyncProvider("cosmostation", WalletInfo(address="a", provider="cosmostation"))
        leap = AsyncProvider("leap", WalletInfo(address="b", provider="leap"))

        wallet = await FirstConnectedProvider([keplr, cosmostation, leap]).get_connected_wallet()

        assert wallet.provider == "cosmostation"
        assert leap.calls == 0

    async def test_none_connected(self):
        provider = FirstConnectedProvider([AsyncProvider("keplr"), StaticWalletProvider()])
        assert await provider.get_connected_wallet() is None

    async def test_failed_connector_skipped_when_another_answers(self):
        provider = FirstConnectedProvider(
            [AsyncProvider("keplr", error=RuntimeError("extension locked")), StaticWalletProvider("persona1abc")]
        )
        wallet = await provider.get_connected_wallet()
        assert wallet.address == "persona1abc"

    async def test_failure_raised_when_nothing_connected(self):
        provider = FirstConnectedProvider(
            [AsyncProvider("keplr", error=RuntimeError("extension locked")), AsyncProvider("leap")]
        )
        with pytest.raises(WalletProviderException) as exc_info:
            await provider.get_connected_wallet()
        assert "keplr: extension locked" in exc_info.value.message


class TestWalletChangeEvents:
    def test_connect_and_disconnect_notify(self):
        provider = StaticWalletProvider()
        events: list[str] = []
        provider.subscribe(lambda: events.append("changed"))

        provider.connect("persona1abc")
        provider.disconnect()

        assert events == ["changed", "changed"]

    def test_unsubscribe(self):
        provider = StaticWalletProvider()
        events: list[str] = []
        unsubscribe = provider.subscribe(lambda: events.append("changed"))
        unsubscribe()
        unsubscribe()
        provider.connect("persona1abc")
        assert events == []

    def test_failing_listener_does_not_block_others(self, caplog):
        provider = StaticWalletProvider()
        events: list[str] = []

        def broken():
            raise RuntimeError("listener exploded")

        provider.subscribe(broken)
        provider.subscribe(lambda: events.append("changed"))
        provider.connect("persona1abc")

        assert events == ["changed"]
        assert "Wallet change listener failed" in caplog.text

    def test_fallback_provider_forwards_child_events(self):
        keplr = StaticWalletProvider()
        leap = AsyncProvider("leap")
        combined = FirstConnectedProvider([keplr, leap])
        events: list[str] = []
        combined.subscribe(lambda: events.append("changed"))

        keplr.connect("persona1abc")
        leap.notify_wallet_changed()

        assert events == ["changed", "changed"]
