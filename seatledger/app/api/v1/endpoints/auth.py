"""
Authentication API endpoints.

Provides login, current-user and logout endpoints. Accounts are created by a
superadmin (see libraries endpoints) or by the seed script; there is no
self-registration.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from seatledger.app.db.session import get_db
from seatledger.app.models.user import User
from seatledger.app.schemas.auth import UserLogin, TokenResponse, UserResponse
from seatledger.app.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from seatledger.app.core.security import verify_password
from seatledger.app.core.jwt import create_access_token
from seatledger.app.core.dependencies import get_current_user, get_bearer_token
from seatledger.app.core.scope import Principal
from seatledger.app.core.token_revocation import revoke_token

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = logging.getLogger("seatledger.auth")


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Accepts username or email for login. Failed attempts are logged
    without saying which part of the credentials was wrong.
    """
    result = await db.execute(
        select(User).where(
            or_(User.username == credentials.username, User.email == credentials.username)
        )
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for %s", credentials.username)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        logger.warning("Login attempt for inactive user %s", user.username)
        raise AuthorizationError("Inactive user account")

    # Role and library binding are not put in the token: they are re-read
    # from the database on every request
    access_token = create_access_token(data={"sub": user.username, "user_id": user.id})

    logger.info("User %s logged in", user.username)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        username=user.username,
        role=user.role,
        library_id=user.library_id
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information, including the bound library.
    """
    result = await db.execute(select(User).where(User.id == principal.user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise NotFoundError("User", principal.user_id)

    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(
    principal: Principal = Depends(get_current_user),
    token: str = Depends(get_bearer_token)
):
    """
    Revoke the presented token.

    The token stops working immediately, even though it has not expired.
    """
    revoked = await revoke_token(token, principal.user_id)
    logger.info("User %s logged out (revoked=%s)", principal.username, revoked)
    return {"message": "Logged out", "revoked": revoked}
