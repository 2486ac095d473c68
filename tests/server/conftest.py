"""Server-specific test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from starlette.testclient import TestClient

from personapass.identity.cache import IdentityCache
from personapass.server.app import create_app
from personapass.server.provisioning import ProvisioningClient

SETUP_URL = "https://totp.example.test/setup"
VERIFY_URL = "https://totp.example.test/verify"


class FakeUpstream:
    """Records upstream calls and answers with a scripted response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"success": True}
        )

    def reply(self, status_code: int = 200, **kwargs) -> None:
        self.responder = lambda request: httpx.Response(status_code, **kwargs)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def provisioning(upstream: FakeUpstream) -> ProvisioningClient:
    return ProvisioningClient(
        setup_url=SETUP_URL,
        verify_url=VERIFY_URL,
        api_key="test-key",
        timeout=5.0,
        transport=httpx.MockTransport(upstream.handler),
    )


@pytest.fixture
def server_env(monkeypatch, clean_env):
    """Server environment with no upstream configured."""
    monkeypatch.setenv("PERSONAPASS_HOST", "127.0.0.1")
    monkeypatch.setenv("PERSONAPASS_PORT", "8430")
    monkeypatch.setenv("PERSONAPASS_STORAGE_BACKEND", "memory")


@pytest.fixture
def app(server_env, cache: IdentityCache, provisioning: ProvisioningClient):
    return create_app(cache=cache, provisioning=provisioning)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
