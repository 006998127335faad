"""
Authentication endpoints.
This module provides endpoints for login and password reset.
"""
from datetime import timedelta
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.auth import get_current_active_user
from registrar.core.config import settings
from registrar.core.deps import get_notifier
from registrar.core.logging import logger
from registrar.core.security import create_access_token
from registrar.db.session import get_db
from registrar.models.user import User as UserModel
from registrar.schemas.user import PasswordReset, PasswordResetRequest, Token, User as UserSchema
from registrar.services.user import UserService

router = APIRouter()

RESET_REQUEST_MESSAGE = "If your email is registered, you will receive a password reset link"


@router.post("/token", response_model=Token)
async def login_for_access_token(
    db: AsyncSession = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Any:
    """
    Get an access token for authentication.

    Args:
        db: Database session
        form_data: OAuth2 password request form

    Returns:
        Bearer access token

    Raises:
        HTTPException: If authentication fails
    """
    logger.info(f"Login attempt for username: {form_data.username}")

    user = await UserService.authenticate(db, username=form_data.username, password=form_data.password)
    if not user:
        logger.warning(f"Failed login attempt for username: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        subject=user.username,
        expires_delta=timedelta(minutes=settings.security.access_token_expire_minutes),
        role=user.role,
    )
    logger.info(f"User logged in successfully: {user.username}")
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserSchema)
async def read_users_me(current_user: UserModel = Depends(get_current_active_user)) -> Any:
    """Get current user information."""
    return current_user


@router.post("/password-reset-request")
async def request_password_reset(
    request_data: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    notifier: Any = Depends(get_notifier),
) -> Dict[str, str]:
    """
    Request a password reset link. The response never reveals whether the
    email is registered.
    """
    logger.info(f"Password reset request for email: {request_data.email}")
    await UserService.request_password_reset(db, request_data.email, notifier=notifier)
    return {"message": RESET_REQUEST_MESSAGE}


@router.post("/password-reset")
async def reset_password(
    reset_data: PasswordReset,
    db: AsyncSession = Depends(get_db),
) -> Dict[str, str]:
    """
    Reset a password with an emailed token.

    Returns:
        Password reset status message
    """
    logger.info("Password reset attempt with token")
    await UserService.reset_password(db, reset_data.token, reset_data.new_password)
    return {"message": "Password has been reset successfully"}
