# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Standardized REST error responses for the PersonaPass identity API.

All REST endpoints use these helpers for a consistent error format:
{
    "success": false,
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message"
    }
}

Status classes follow who is at fault: 4xx for bad client input, 5xx for
configuration or upstream failures.
"""

from __future__ import annotations

import logging
import os
import sys
import uuid

from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

# Debug mode: include exception details in 500 responses.
_DEBUG = os.environ.get("PERSONAPASS_DEBUG", "0") == "1"

# =============================================================================
# STANDARD ERROR CODES
# =============================================================================

# Validation errors (400)
VALIDATION_MISSING_FIELD = "VALIDATION_MISSING_FIELD"
VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
VALIDATION_INVALID_VALUE = "VALIDATION_INVALID_VALUE"
VALIDATION_INVALID_JSON = "VALIDATION_INVALID_JSON"

# Upstream rejected the request (400)
UPSTREAM_REJECTED = "UPSTREAM_REJECTED"

# Not found errors (404)
NOT_FOUND_IDENTITY = "NOT_FOUND_IDENTITY"

# Server errors (500)
INTERNAL_ERROR = "INTERNAL_ERROR"
CONFIG_MISSING = "CONFIG_MISSING"

# Upstream errors (502)
UPSTREAM_ERROR = "UPSTREAM_ERROR"

# Service unavailable (503)
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# =============================================================================
# ERROR RESPONSE HELPERS
# =============================================================================


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        code: Error code (e.g., VALIDATION_MISSING_FIELD)
        message: Human-readable error message
        status_code: HTTP status code (default 400)
    """
    return JSONResponse(
        {
            "success": False,
            "error": {
                "code": code,
                "message": message,
            },
        },
        status_code=status_code,
    )


def validation_error(message: str, code: str = VALIDATION_INVALID_VALUE) -> JSONResponse:
    """Create a 400 validation error response."""
    return error_response(code, message, status_code=400)


def missing_field_error(*field_names: str) -> JSONResponse:
    """Create a 400 error naming every missing required field."""
    if len(field_names) == 1:
        message = f"{field_names[0]} is required"
    else:
        message = " and ".join(field_names) + " are required"
    return error_response(VALIDATION_MISSING_FIELD, message, status_code=400)


def invalid_format_error(field_name: str, details: str = "") -> JSONResponse:
    """Create a 400 error for invalid field format."""
    message = f"Invalid {field_name} format"
    if details:
        message = f"{message}: {details}"
    return error_response(VALIDATION_INVALID_FORMAT, message, status_code=400)


def invalid_json_error() -> JSONResponse:
    """Create a 400 error for invalid JSON body."""
    return error_response(VALIDATION_INVALID_JSON, "Invalid JSON body", status_code=400)


def not_found_error(resource: str, code: str = NOT_FOUND_IDENTITY) -> JSONResponse:
    """Create a 404 not found error response."""
    return error_response(code, f"{resource} not found", status_code=404)


def config_missing_error(service: str) -> JSONResponse:
    """Create a 500 error for a service whose configuration is absent."""
    return error_response(CONFIG_MISSING, f"{service} not configured", status_code=500)


def upstream_error(message: str, status_code: int = 502) -> JSONResponse:
    """Create an error for a failed upstream call.

    ``status_code`` is 400 when the upstream rejected the input and 502 when
    it could not be reached or failed.
    """
    code = UPSTREAM_REJECTED if status_code < 500 else UPSTREAM_ERROR
    return error_response(code, message, status_code=status_code)


def internal_error(
    message: str = "Internal server error",
    exc: BaseException | None = None,
) -> JSONResponse:
    """Create a 500 internal error response.

    Always includes a request_id for log correlation. In debug mode
    (PERSONAPASS_DEBUG=1) the exception type and message are included too.
    """
    request_id = uuid.uuid4().hex[:12]

    error_body: dict = {
        "code": INTERNAL_ERROR,
        "message": message,
        "request_id": request_id,
    }

    if exc is None:
        exc = sys.exc_info()[1]

    if exc is not None:
        logger.error("request_id=%s %s: %s", request_id, type(exc).__name__, exc)
        if _DEBUG:
            error_body["exception"] = type(exc).__name__
            error_body["detail"] = str(exc)

    return JSONResponse(
        {"success": False, "error": error_body},
        status_code=500,
    )


def service_unavailable_error(service: str) -> JSONResponse:
    """Create a 503 service unavailable error response."""
    return error_response(SERVICE_UNAVAILABLE, f"{service} unavailable", status_code=503)
