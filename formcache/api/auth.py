"""Admin authentication.

Admin and refresh endpoints require `Authorization: Bearer <CRON_SECRET>`.
The check runs as a route dependency, before any store access.
"""

import hmac
import logging

from fastapi import Header, HTTPException, status

from formcache.config import get_settings
from formcache.core.errors import AuthorizationError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def verify_admin_auth(auth_header: str | None, secret: str | None) -> None:
    """Check an Authorization header against the configured secret.

    With no secret configured, access is allowed (development mode) and a
    warning is logged.

    Raises:
        AuthorizationError: header missing, malformed, or wrong token
    """
    if not secret:
        logger.warning("[Auth] CRON_SECRET not configured - allowing access")
        return

    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise AuthorizationError("Missing bearer token")

    token = auth_header[len(BEARER_PREFIX) :]
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise AuthorizationError("Invalid bearer token")


def require_admin(authorization: str | None = Header(None)) -> None:
    """FastAPI dependency rejecting unauthenticated admin requests with 401."""
    try:
        verify_admin_auth(authorization, get_settings().cron_secret)
    except AuthorizationError as e:
        logger.warning(f"[Auth] Rejected admin request: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - Valid authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
