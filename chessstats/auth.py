"""
Auth dependency – verify session tokens issued by AuthService.

Clients send the session token in the Authorization header as a bearer token.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chessstats.accounts import AuthService
from chessstats.deps import get_auth_service

security = HTTPBearer(auto_error=False)


async def get_current_uid(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[str]:
    """
    Return the uid for the bearer token.
    Returns None for unauthenticated requests (public endpoints).
    """
    if credentials is None:
        return None
    return await auth_service.verify(credentials.credentials)


async def require_uid(
    uid: Optional[str] = Depends(get_current_uid),
) -> str:
    """Dependency that raises 401 if not authenticated."""
    if uid is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return uid


async def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return credentials.credentials
