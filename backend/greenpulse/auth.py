"""API key authentication via X-API-Key header with constant-time comparison.

Owner identity (``user_id``) is established upstream; this key only gates
the owner-facing read and management routes. Device ingestion is open.
"""

import hmac

from fastapi import Depends, Request, Security
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader

_header = APIKeyHeader(name="X-API-Key", auto_error=False)


class AuthenticationError(Exception):
    """Raised when API key authentication fails."""

    def __init__(self, message: str = "Missing or invalid API key"):
        self.message = message
        super().__init__(message)


async def _authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=401,
        content={"error": exc.message, "code": "UNAUTHORIZED", "details": {}},
    )


def install_auth_error_handler(app) -> None:
    """Register the AuthenticationError exception handler on a FastAPI app."""
    app.add_exception_handler(AuthenticationError, _authentication_error_handler)


def create_api_key_dependency(expected_key: str):
    """Create a FastAPI dependency that validates the X-API-Key header.

    An empty expected key rejects every request.
    """

    async def verify_api_key(api_key: str | None = Security(_header)):
        if not expected_key:
            raise AuthenticationError("API key is not configured")
        if api_key is None or not hmac.compare_digest(api_key, expected_key):
            raise AuthenticationError()
        return api_key

    return Depends(verify_api_key)
