# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Standardized REST error responses for the orbital API.

All REST endpoints should use these helpers for consistent error format:
{
    "success": false,
    "error": {
        "code": "ERROR_CODE",
        "message": "Human readable message"
    }
}
"""

from __future__ import annotations

from starlette.responses import JSONResponse

# =============================================================================
# STANDARD ERROR CODES
# =============================================================================

# Validation errors (400)
VALIDATION_INVALID_VALUE = "VALIDATION_INVALID_VALUE"
VALIDATION_INVALID_JSON = "VALIDATION_INVALID_JSON"
VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"

# Not found errors (404)
NOT_FOUND_NODE = "NOT_FOUND_NODE"


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
        code: Error code (e.g., VALIDATION_INVALID_VALUE)
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


def invalid_json_error() -> JSONResponse:
    """Create a 400 error for invalid JSON body."""
    return error_response(VALIDATION_INVALID_JSON, "Invalid JSON body", status_code=400)


def not_found_error(resource: str, code: str = NOT_FOUND_NODE) -> JSONResponse:
    """Create a 404 not found error response."""
    return error_response(code, f"{resource} not found", status_code=404)
