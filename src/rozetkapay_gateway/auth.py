"""Admin access for the provider-facing operations (info, cancel, refund)."""

import os
import secrets
import logging
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

ADMIN_API_KEY_ENV = "ROZETKAPAY_ADMIN_API_KEY"
ADMIN_RATE_LIMIT = "30/minute"

# Missing credentials are answered with 401 below rather than FastAPI's 403
admin_bearer = HTTPBearer(auto_error=False)

limiter = Limiter(key_func=get_remote_address)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(admin_bearer),
) -> str:
    """Allow the request only with ``Authorization: Bearer <ROZETKAPAY_ADMIN_API_KEY>``.

    Raises:
        HTTPException: 503 when no admin key is configured (the admin routes
            are then disabled), 401 when the token is missing or wrong.
    """
    expected_key = os.getenv(ADMIN_API_KEY_ENV)
    if not expected_key:
        logger.error(f"{ADMIN_API_KEY_ENV} is not configured; admin routes are disabled")
        raise HTTPException(status_code=503, detail="Admin API is not configured")
    if credentials is None:
        raise _unauthorized("Missing admin API key")
    if not secrets.compare_digest(credentials.credentials, expected_key):
        logger.warning("Rejected admin request with an invalid API key")
        raise _unauthorized("Invalid admin API key")
    return credentials.credentials
