# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Client for the remote TOTP provisioning functions.

The upstream is a pair of remote functions (setup and verify) that speak
JSON and answer ``{"success": bool, ...}``. This module forwards requests to
them and normalizes their replies. Input validation happens before any
request leaves the process.

Failures are raised as:
- :class:`ConfigException` when the upstream URL is not configured;
- :class:`ProvisioningException` with ``status_code`` 502 when the upstream
  cannot be reached, answers with an error status or with junk;
- :class:`ProvisioningException` with ``status_code`` 400 when the upstream
  answers ``success: false``.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from personapass.core.exceptions import ConfigException, ProvisioningException, ValidationException
from personapass.core.logging import redact

from .config import ServerSettings, get_settings

logger = logging.getLogger(__name__)

TOTP_CODE_PATTERN = re.compile(r"^\d{6}$")


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ProvisioningResult:
    """Normalized TOTP setup reply."""

    secret: str | None = None
    qr_code: str | None = None
    backup_codes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "secret": self.secret,
            "qr_code": self.qr_code,
            "backup_codes": self.backup_codes,
        }


@dataclass(frozen=True)
class VerificationResult:
    """Normalized TOTP verify reply."""

    setup_complete: bool = False
    message: str = "TOTP verification successful"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "setup_complete": self.setup_complete,
        }


# =============================================================================
# Validation
# =============================================================================


def missing_fields(body: dict[str, Any], *names: str) -> list[str]:
    """Names of required fields that are absent or empty in ``body``."""
    return [name for name in names if not body.get(name)]


def validate_totp_code(code: Any) -> str:
    """Return ``code`` as a string if it is exactly six digits.

    JSON clients may send the code as a number; integers are accepted in
    their decimal form.

    Raises:
        ValidationException: Otherwise.
    """
    if isinstance(code, int) and not isinstance(code, bool):
        code = str(code)
    if not isinstance(code, str) or not TOTP_CODE_PATTERN.match(code):
        raise ValidationException("Verification code must be 6 digits", field="code")
    return code


# =============================================================================
# Client
# =============================================================================


class ProvisioningClient:
    """Async HTTP client for the TOTP setup/verify upstream."""

    def __init__(
        self,
        setup_url: str | None,
        verify_url: str | None,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.setup_url = setup_url
        self.verify_url = verify_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: ServerSettings | None = None) -> ProvisioningClient:
        settings = settings or get_settings()
        return cls(
            setup_url=settings.totp_setup_url,
            verify_url=settings.totp_verify_url,
            api_key=settings.provisioning_api_key,
            timeout=settings.provisioning_timeout,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def _call(
        self,
        url: str | None,
        payload: dict[str, Any],
        *,
        service: str,
        env_var: str,
        rejected_message: str,
    ) -> dict[str, Any]:
        if not url:
            logger.error("%s not configured (%s unset)", service, env_var)
            raise ConfigException(f"{service} not configured", missing_vars=[env_var])

        body = {**payload, "timestamp": int(time.time() * 1000)}
        logger.info("Calling %s", service, extra={"extra_data": redact(body)})

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=body, headers=self._headers())
        except httpx.TimeoutException as e:
            raise ProvisioningException(f"{service} timed out") from e
        except httpx.HTTPError as e:
            raise ProvisioningException(f"{service} unreachable: {e}") from e

        if resp.is_error:
            logger.error("%s error %d: %s", service, resp.status_code, resp.text[:500])
            raise ProvisioningException(f"{service} error", upstream_status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise ProvisioningException(f"{service} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise ProvisioningException(f"{service} returned an unexpected payload")

        if not data.get("success"):
            message = data.get("message") or rejected_message
            logger.warning("%s rejected request: %s", service, message)
            raise ProvisioningException(message, status_code=400, upstream_status=resp.status_code)

        return data

    async def setup_totp(self, did: str, signature: str) -> ProvisioningResult:
        """Provision a TOTP secret for ``did``."""
        data = await self._call(
            self.setup_url,
            {"did": did, "signature": signature},
            service="TOTP setup service",
            env_var="TOTP_SETUP_LAMBDA_URL",
            rejected_message="TOTP setup failed",
        )
        logger.info("TOTP setup successful for DID %s", did)
        return ProvisioningResult(
            secret=data.get("secret"),
            qr_code=data.get("qr_code"),
            backup_codes=list(data.get("backup_codes") or []),
        )

    async def verify_totp(self, did: str, code: str, setup_mode: bool = False) -> VerificationResult:
        """Check a TOTP code for ``did``."""
        validate_totp_code(code)
        data = await self._call(
            self.verify_url,
            {"did": did, "code": code, "setup_mode": bool(setup_mode)},
            service="TOTP verification service",
            env_var="TOTP_VERIFY_LAMBDA_URL",
            rejected_message="Invalid verification code",
        )
        logger.info("TOTP verification successful for DID %s", did)
        return VerificationResult(setup_complete=bool(data.get("setup_complete", False)))
