"""Tests for AuthRouter route determination."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from personapass.identity.cache import IdentityCache
from personapass.identity.models import AuthRouteResult, RouteKind
from personapass.identity.router import REASON_DISCONNECTED, REASON_NEW_USER, AuthRouter
from personapass.identity.storage import MemoryStorage
from personapass.identity.wallet import StaticWalletProvider, WalletConnectionProvider, WalletInfo


class FailingProvider(WalletConnectionProvider):
    async def get_connected_wallet(self) -> WalletInfo | None:
        raise ConnectionError("wallet extension not responding")


@pytest.fixture
def provider() -> StaticWalletProvider:
    return StaticWalletProvider()


@pytest.fixture
def router(provider: StaticWalletProvider, cache: IdentityCache) -> AuthRouter:
    return AuthRouter(provider, cache)


class TestDetermineUserRoute:
    async def test_disconnected(self, router: AuthRouter):
        result = await router.determine_user_route()
        assert result.route == RouteKind.DISCONNECTED
        assert result.did is None
        assert result.reason == REASON_DISCONNECTED

    async def test_new_user(self, router: AuthRouter, provider: StaticWalletProvider):
        provider.connect("0xABC")
        result = await router.determine_user_route()
        assert result.route == RouteKind.NEW_USER
        assert result.did is None
        assert result.wallet_address == "0xABC"
        assert result.reason == REASON_NEW_USER

    async def test_returning_user(self, router: AuthRouter, provider: StaticWalletProvider, cache, record):
        cache.upsert(record)
        provider.connect("0xABC")
        result = await router.determine_user_route()
        assert result.route == RouteKind.RETURNING_USER
        assert result.did == "did:persona:123"
        assert result.record == record
        assert "Ada" in result.reason

    async def test_returning_user_uses_latest_record(self, router, provider, cache, record_factory):
        cache.upsert(record_factory(did="did:persona:123"))
        cache.upsert(record_factory(did="did:persona:999"))
        provider.connect("0xABC")
        result = await router.determine_user_route()
        assert result.did == "did:persona:999"

    async def test_repeated_calls_are_stable(self, router, provider, cache, record):
        cache.upsert(record)
        provider.connect("0xABC")
        results = [await router.determine_user_route() for _ in range(3)]
        assert {r.route for r in results} == {RouteKind.RETURNING_USER}

    async def test_reflects_live_wallet(self, router, provider, cache, record):
        cache.upsert(record)
        provider.connect("0xABC")
        assert (await router.determine_user_route()).route == RouteKind.RETURNING_USER
        provider.connect("0xOTHER")
        assert (await router.determine_user_route()).route == RouteKind.NEW_USER
        provider.disconnect()
        assert (await router.determine_user_route()).route == RouteKind.DISCONNECTED

    async def test_performs_no_writes(self, memory_storage: MemoryStorage, router, provider):
        provider.connect("0xABC")
        await router.determine_user_route()
        assert memory_storage.get_item("personapass_temp_dids") is None


class TestRouteFailures:
    async def test_wallet_failure_is_error_verdict(self, cache):
        result = await AuthRouter(FailingProvider(), cache).determine_user_route()
        assert result.route == RouteKind.ERROR
        assert "wallet extension not responding" in result.reason
        assert result.did is None

    async def test_unavailable_storage_routes_new_user(self, unavailable_cache):
        router = AuthRouter(StaticWalletProvider("0xABC"), unavailable_cache)
        result = await router.determine_user_route()
        assert result.route == RouteKind.NEW_USER

    async def test_faulted_storage_is_error_verdict(self, memory_storage, cache):
        memory_storage.set_item(cache.storage_key, "{not json")
        router = AuthRouter(StaticWalletProvider("0xABC"), cache)
        result = await router.determine_user_route()
        assert result.route == RouteKind.ERROR
        assert result.wallet_address == "0xABC"
        assert "corrupt" in result.reason

    async def test_cache_exception_is_error_verdict(self):
        cache = MagicMock()
        cache.resolve.side_effect = RuntimeError("storage vanished")
        router = AuthRouter(StaticWalletProvider("0xABC"), cache)
        result = await router.determine_user_route()
        assert result.route == RouteKind.ERROR
        assert "storage vanished" in result.reason


class TestFromAddress:
    async def test_with_address(self, cache, record):
        cache.upsert(record)
        result = await AuthRouter.from_address(cache, "0xABC").determine_user_route()
        assert result.route == RouteKind.RETURNING_USER

    @pytest.mark.parametrize("address", [None, ""])
    async def test_without_address(self, cache, address):
        result = await AuthRouter.from_address(cache, address).determine_user_route()
        assert result == AuthRouteResult(route=RouteKind.DISCONNECTED, reason=REASON_DISCONNECTED)


class TestExtension:
    async def test_subclass_can_add_verdicts(self, cache, record_factory):
        class OnboardingRouter(AuthRouter):
            def route_for_record(self, wallet, record):
                if not record.tx_hash:
                    return AuthRouteResult(route="onboarding", did=record.did, wallet_address=wallet.address)
                return super().route_for_record(wallet, record)

        cache.upsert(record_factory(tx_hash=""))
        result = await OnboardingRouter(StaticWalletProvider("0xABC"), cache).determine_user_route()
        assert result.route == "onboarding"
        assert result.did == "did:persona:123"

    async def test_failing_override_is_error_verdict(self, cache, record):
        class BrokenRouter(AuthRouter):
            def route_for_record(self, wallet, record):
                raise LookupError("profile service down")

        cache.upsert(record)
        result = await BrokenRouter(StaticWalletProvider("0xABC"), cache).determine_user_route()

        assert result.route == RouteKind.ERROR
        assert result.wallet_address == "0xABC"
        assert "profile service down" in result.reason
