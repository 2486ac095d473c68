# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Exception hierarchy for PersonaPass.

The identity core never lets these escape its public operations; they are
raised at the edges (storage backends, wallet providers, the provisioning
client) and converted into routing verdicts or REST error bodies.
"""

from __future__ import annotations

from typing import Any


class PersonaPassException(Exception):  # noqa: N818
    """Base exception for all PersonaPass errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class StorageException(PersonaPassException):
    """Exception for storage medium failures.

    Raised when:
    - The storage slot exists but cannot be read or written
    - The persisted payload is not a JSON list of records
    """

    def __init__(self, message: str, key: str | None = None):
        details = {}
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.key = key


class WalletProviderException(PersonaPassException):
    """Exception raised by a wallet connector that cannot be queried."""

    def __init__(self, message: str, provider: str | None = None):
        details = {}
        if provider:
            details["provider"] = provider
        super().__init__(message, details)
        self.provider = provider


class ValidationException(PersonaPassException):
    """Exception for invalid input at a service boundary.

    Raised when:
    - Required fields are missing
    - Field values have the wrong shape (e.g. a TOTP code that is not 6 digits)
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ConfigException(PersonaPassException):
    """Exception for missing or invalid configuration."""

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


class ProvisioningException(PersonaPassException):
    """Exception for TOTP provisioning upstream failures.

    ``status_code`` carries the HTTP classification the proxy answers with:
    400 when the upstream rejected the request, 502 when the upstream could
    not be reached or answered with an error status.
    """

    def __init__(self, message: str, status_code: int = 502, upstream_status: int | None = None):
        details: dict[str, Any] = {"status_code": status_code}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(message, details)
        self.status_code = status_code
        self.upstream_status = upstream_status
