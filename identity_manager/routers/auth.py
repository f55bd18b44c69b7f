"""Authentication and current-user router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from identity_manager.config import settings
from identity_manager.core.access import Principal
from identity_manager.core.dependencies import api_gate, get_current_principal, get_user_service
from identity_manager.core.exceptions import NotFoundError, UnauthorizedError
from identity_manager.core.security import create_access_token
from identity_manager.schemas.auth import LoginResponse, UserLogin
from identity_manager.schemas.user import PrivacyUpdate, UserResponse, UserUpdate
from identity_manager.services.user_service import UserService, to_user_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"], dependencies=[Depends(api_gate)])


@router.post("/auth/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    credentials: UserLogin,
    users: Annotated[UserService, Depends(get_user_service)],
) -> LoginResponse:
    """Authenticate user and return access token.

    Args:
        credentials: User login data (email, password)
        users: User service

    Returns:
        LoginResponse: Access token and user information

    Raises:
        UnauthorizedError: If email or password is invalid
    """
    user = users.authenticate(credentials.email, credentials.password)
    if user is None:
        raise UnauthorizedError("Invalid email or password")

    access_token = create_access_token(data={"sub": user.email})
    logger.info(f"Issued access token for user {user.id}")

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        user=to_user_response(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    principal: Annotated[Principal, Depends(get_current_principal)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Return the currently authenticated user."""
    user = users.get_user_by_email(principal.email)
    if user is None:
        raise NotFoundError("User", "email", principal.email)
    return user


@router.put("/me", response_model=UserResponse)
async def update_me(
    update: UserUpdate,
    principal: Annotated[Principal, Depends(get_current_principal)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Update the profile of the currently authenticated user."""
    return users.update_user_profile(principal.email, update)


@router.patch("/me/privacy", response_model=UserResponse)
async def update_my_privacy(
    update: PrivacyUpdate,
    principal: Annotated[Principal, Depends(get_current_principal)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Toggle the privacy flag of the currently authenticated user."""
    return users.update_privacy_settings(principal.email, update.is_privacy_enabled)
