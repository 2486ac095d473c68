"""Starlette ASGI application for the PersonaPass identity service.

Serves the identity cache and routing verdicts to the browser client and the
registration flow, and proxies TOTP provisioning to its remote functions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from personapass.identity.cache import IdentityCache
from personapass.identity.storage import StorageStatus, storage_from_config

from .config import get_settings
from .identity_endpoints import (
    clear_records_endpoint,
    get_record_endpoint,
    list_records_endpoint,
    route_endpoint,
    stats_endpoint,
    upsert_record_endpoint,
)
from .provisioning import ProvisioningClient
from .totp_endpoints import totp_setup_endpoint, totp_verify_endpoint

logger = logging.getLogger(__name__)

API_V1 = "/api/v1"


async def info_endpoint(request: Request) -> JSONResponse:
    """Service discovery document."""
    settings = get_settings()
    return JSONResponse(
        {
            "server": settings.server_name,
            "version": settings.server_version,
            "endpoints": {
                "health": f"{API_V1}/health",
                "route": f"{API_V1}/identity/route",
                "records": f"{API_V1}/identity/records",
                "stats": f"{API_V1}/identity/stats",
                "totp_setup": f"{API_V1}/auth/totp/setup",
                "totp_verify": f"{API_V1}/auth/totp/verify",
            },
        }
    )


async def health_endpoint(request: Request) -> JSONResponse:
    """Health check endpoint.

    Unavailable storage is degraded-but-serving (every wallet routes as new);
    faulted storage fails the check.
    """
    settings = get_settings()
    cache: IdentityCache = request.app.state.identity_cache
    storage_status = cache.status()

    health_data: dict[str, Any] = {
        "status": "healthy",
        "server": settings.server_name,
        "version": settings.server_version,
        "storage": str(storage_status),
        "totp_configured": bool(settings.totp_setup_url),
    }
    if storage_status == StorageStatus.UNAVAILABLE:
        health_data["status"] = "degraded"
    elif storage_status == StorageStatus.FAULTED:
        health_data["status"] = "unhealthy"

    status_code = 503 if health_data["status"] == "unhealthy" else 200
    return JSONResponse(health_data, status_code=status_code)


@asynccontextmanager
async def lifespan(app: Starlette):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("Starting PersonaPass identity service on %s:%s", settings.host, settings.port)

    cache: IdentityCache = app.state.identity_cache
    logger.info("Identity cache %s: %s", cache.storage_key, cache.status())
    if not settings.totp_setup_url:
        logger.warning("TOTP setup upstream not configured! Set TOTP_SETUP_LAMBDA_URL.")

    yield

    logger.info("PersonaPass identity service shutting down")


def create_app(
    cache: IdentityCache | None = None,
    provisioning: ProvisioningClient | None = None,
) -> Starlette:
    """Create the Starlette ASGI application.

    Args:
        cache: Identity cache to serve. Built from settings when omitted.
        provisioning: TOTP upstream client. Built from settings when omitted.
    """
    settings = get_settings()

    routes = [
        Route("/", info_endpoint, methods=["GET"]),
        Route(f"{API_V1}/health", health_endpoint, methods=["GET"]),
        # Identity routing and cache
        Route(f"{API_V1}/identity/route", route_endpoint, methods=["GET"]),
        Route(f"{API_V1}/identity/records", list_records_endpoint, methods=["GET"]),
        Route(f"{API_V1}/identity/records", upsert_record_endpoint, methods=["POST"]),
        Route(f"{API_V1}/identity/records", clear_records_endpoint, methods=["DELETE"]),
        Route(f"{API_V1}/identity/records/{{wallet_address}}", get_record_endpoint, methods=["GET"]),
        Route(f"{API_V1}/identity/stats", stats_endpoint, methods=["GET"]),
        # TOTP provisioning proxy
        Route(f"{API_V1}/auth/totp/setup", totp_setup_endpoint, methods=["POST"]),
        Route(f"{API_V1}/auth/totp/verify", totp_verify_endpoint, methods=["POST"]),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        ),
    ]

    app = Starlette(
        routes=routes,
        middleware=middleware,
        lifespan=lifespan,
    )
    app.state.identity_cache = cache or IdentityCache(storage_from_config(settings), settings.storage_key)
    app.state.provisioning = provisioning or ProvisioningClient.from_settings(settings)
    return app


def run() -> None:
    """Run the server using uvicorn."""
    import uvicorn

    from personapass.core.logging import configure_logging

    settings = get_settings()
    configure_logging()

    uvicorn.run(
        "personapass.server.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    run()
