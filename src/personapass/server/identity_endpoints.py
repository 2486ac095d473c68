# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Identity cache and routing REST endpoints.

The registration flow posts finished records here; clients ask for their
routing verdict by declaring the wallet address they have connected.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from personapass.identity.cache import IdentityCache
from personapass.identity.router import AuthRouter
from personapass.identity.storage import StorageStatus

from .errors import invalid_json_error, not_found_error, service_unavailable_error, validation_error
from .identity_models import IdentityRecordCreate

logger = logging.getLogger(__name__)


def get_cache(request: Request) -> IdentityCache:
    return request.app.state.identity_cache


# =============================================================================
# Routing
# =============================================================================


async def route_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/identity/route?wallet_address=... — routing verdict.

    A missing or empty ``wallet_address`` means no wallet is connected.
    """
    address = request.query_params.get("wallet_address", "").strip()
    router = AuthRouter.from_address(get_cache(request), address)
    result = await router.determine_user_route()
    return JSONResponse(result.to_dict())


# =============================================================================
# Records
# =============================================================================


async def list_records_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/identity/records — every cached record in storage order."""
    records = get_cache(request).list_all()
    return JSONResponse({"records": [r.to_dict() for r in records], "total_count": len(records)})


async def get_record_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/identity/records/{wallet_address} — one cached record."""
    address = request.path_params["wallet_address"]
    record = get_cache(request).lookup(address)
    if record is None:
        return not_found_error(f"Identity for wallet {address}")
    return JSONResponse(record.to_dict())


async def upsert_record_endpoint(request: Request) -> JSONResponse:
    """POST /api/v1/identity/records — store a finished registration."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return invalid_json_error()
    if not isinstance(body, dict):
        return invalid_json_error()

    try:
        record = IdentityRecordCreate.model_validate(body).to_record()
    except ValidationError as e:
        return validation_error(f"Invalid identity record: {e.errors()[0]['msg']}")

    cache = get_cache(request)
    # The cache drops writes it cannot make; report that instead of claiming success.
    status = cache.status()
    if status != StorageStatus.AVAILABLE:
        logger.warning("Rejecting identity upsert for %s: storage %s", record.wallet_address, status)
        return service_unavailable_error("Identity storage")

    cache.upsert(record)
    if cache.lookup(record.wallet_address) != record:
        logger.error("Identity upsert for %s did not persist", record.wallet_address)
        return service_unavailable_error("Identity storage")
    return JSONResponse({"success": True, "record": record.to_dict()}, status_code=201)


async def clear_records_endpoint(request: Request) -> JSONResponse:
    """DELETE /api/v1/identity/records — drop the whole cache."""
    get_cache(request).clear()
    return JSONResponse({"success": True})


async def stats_endpoint(request: Request) -> JSONResponse:
    """GET /api/v1/identity/stats — cache diagnostics."""
    return JSONResponse(get_cache(request).stats())
