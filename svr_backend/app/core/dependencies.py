"""
Dependencies for FastAPI.

Authentication against identity-provider tokens, plus accessors for the
application-owned store, notification center and reference cache.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from svr_backend.app.core.exceptions import AuthenticationError
from svr_backend.app.core.jwt import decode_access_token

# HTTP Bearer security scheme; a missing header is reported as ERR_AUTH_001
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    The token is minted by the identity provider and carries ``sub``,
    ``email`` and the boolean ``admin`` claim.

    Returns:
        Principal with ``sub``, ``email`` and ``admin``

    Raises:
        AuthenticationError: token missing, invalid, expired or without subject
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid token payload")

    return {
        "sub": subject,
        "email": payload.get("email"),
        "admin": payload.get("admin") is True,
    }


def get_store(request: Request):
    return request.app.state.store


def get_notification_center(request: Request):
    return request.app.state.notifications


def get_reference_cache(request: Request):
    return request.app.state.reference_cache
