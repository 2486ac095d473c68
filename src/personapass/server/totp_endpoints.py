# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""TOTP provisioning proxy endpoints.

POST /api/v1/auth/totp/setup   {did, signature}        -> {success, secret, qr_code, backup_codes}
POST /api/v1/auth/totp/verify  {did, code, setup_mode} -> {success, message, setup_complete}

Required fields are checked before the upstream is contacted.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from personapass.core.exceptions import ConfigException, ProvisioningException, ValidationException

from .errors import (
    config_missing_error,
    internal_error,
    invalid_format_error,
    invalid_json_error,
    missing_field_error,
    upstream_error,
)
from .provisioning import ProvisioningClient, missing_fields, validate_totp_code

logger = logging.getLogger(__name__)


def _get_client(request: Request) -> ProvisioningClient:
    client = getattr(request.app.state, "provisioning", None)
    if client is None:
        client = ProvisioningClient.from_settings()
        request.app.state.provisioning = client
    return client


async def _read_body(request: Request) -> dict[str, Any] | None:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


async def totp_setup_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/auth/totp/setup — provision a TOTP secret for a DID."""
    body = await _read_body(request)
    if body is None:
        return invalid_json_error()

    missing = missing_fields(body, "did", "signature")
    if missing:
        return missing_field_error(*missing)

    try:
        result = await _get_client(request).setup_totp(str(body["did"]), str(body["signature"]))
    except ConfigException:
        return config_missing_error("TOTP service")
    except ProvisioningException as e:
        return upstream_error(e.message, e.status_code)
    except Exception as e:  # Intentionally broad: the proxy always answers with a structured body
        return internal_error(exc=e)

    return JSONResponse(result.to_dict())


async def totp_verify_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/auth/totp/verify — check a TOTP code for a DID."""
    body = await _read_body(request)
    if body is None:
        return invalid_json_error()

    missing = missing_fields(body, "did", "code")
    if missing:
        return missing_field_error(*missing)

    try:
        code = validate_totp_code(body["code"])
    except ValidationException as e:
        return invalid_format_error("code", e.message)

    try:
        result = await _get_client(request).verify_totp(
            str(body["did"]),
            code,
            setup_mode=bool(body.get("setup_mode", False)),
        )
    except ConfigException:
        return config_missing_error("TOTP verification service")
    except ProvisioningException as e:
        return upstream_error(e.message, e.status_code)
    except Exception as e:  # Intentionally broad: the proxy always answers with a structured body
        return internal_error(exc=e)

    return JSONResponse(result.to_dict())
