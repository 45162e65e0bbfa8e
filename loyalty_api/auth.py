"""
Shared-secret authentication for the API.

Security model:
- Every badge/wallet endpoint requires API_SECRET_KEY via the X-API-Key header
  or an `Authorization: Bearer <key>` header
- If API_SECRET_KEY is not set, all protected requests are denied
- No query param token support (prevents log/referrer leakage)
"""

import hmac
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, get_settings

logger = structlog.get_logger()

UNAUTHORIZED_MESSAGE = "Unauthorized. Invalid or missing API key."

# Credentials via headers only (no query param for security)
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def check_api_key(provided: Optional[str], expected: Optional[str]) -> bool:
    """Compare a supplied key against the configured secret."""
    if not expected:
        logger.error("API_SECRET_KEY not configured")
        return False

    if not provided:
        logger.warning("No API key provided in request")
        return False

    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Invalid API key provided")
        return False

    return True


async def verify_api_key(
    api_key: Optional[str] = Depends(api_key_header),
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> bool:
    """
    Verify the shared secret.

    X-API-Key takes precedence over the Authorization header.

    Returns:
        True if authentication passes

    Raises:
        HTTPException: 401 if authentication fails
    """
    provided = api_key or (bearer.credentials if bearer else None)

    if not check_api_key(provided, settings.api_secret_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return True
