"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication
and for building the caller's Principal.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from seatledger.app.core.exceptions import TokenRevokedError
from seatledger.app.core.jwt import decode_access_token
from seatledger.app.core.scope import Principal
from seatledger.app.core.token_revocation import is_token_revoked
from seatledger.app.db.session import get_db
from seatledger.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature and expiry
    2. Checks if token has been explicitly revoked (logout)
    3. Loads the user row and verifies it is still active
    4. Builds the Principal from the database row, so a manager's library
       binding cannot be altered by tampering with the request

    Args:
        credentials: HTTP Bearer token from request header
        db: Database session for real-time user lookup

    Returns:
        Principal for the authenticated caller

    Raises:
        HTTPException: 401 if authentication fails for any reason
    """
    token = credentials.credentials

    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(token):
        raise TokenRevokedError()

    # 3. Real-time database check
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    # 4. Principal comes from the row, not from token claims
    return Principal(
        user_id=user.id,
        username=user.username,
        role=user.role,
        library_id=user.library_id,
    )


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Raw bearer token, used by logout to blacklist it."""
    return credentials.credentials
