"""Users router."""

import logging
import mimetypes
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from identity_manager.config import settings
from identity_manager.core.dependencies import api_gate, get_user_service
from identity_manager.core.exceptions import NotFoundError
from identity_manager.schemas.common import Page, PageRequest
from identity_manager.schemas.user import (
    AvatarResponse,
    PrivacyStats,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from identity_manager.services.user_service import UserService, check_avatar_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(api_gate)])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Register a new user account.

    Args:
        user_data: Registration data
        users: User service

    Returns:
        UserResponse: Created user information

    Raises:
        DuplicateResourceError: If the email is already registered
    """
    return users.register_user(
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
        is_privacy_enabled=user_data.is_privacy_enabled,
    )


@router.get("", response_model=list[UserResponse])
async def list_users(
    users: Annotated[UserService, Depends(get_user_service)],
) -> list[UserResponse]:
    """List all users."""
    return users.get_all_users()


@router.get("/paginated", response_model=Page[UserResponse])
async def list_users_paginated(
    users: Annotated[UserService, Depends(get_user_service)],
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=100)] = 10,
    sort_by: Annotated[Literal["id", "email", "first_name", "last_name", "created_at"], Query()] = "id",
    direction: Annotated[Literal["asc", "desc"], Query()] = "asc",
) -> Page[UserResponse]:
    """List users one page at a time."""
    page_request = PageRequest(page=page, size=size, sort_by=sort_by, direction=direction)
    return users.get_users_page(page_request)


@router.get("/search", response_model=Page[UserResponse])
async def search_users(
    keyword: Annotated[str, Query(min_length=1)],
    users: Annotated[UserService, Depends(get_user_service)],
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> Page[UserResponse]:
    """Search users by email, first name or last name."""
    return users.search_users(keyword, PageRequest(page=page, size=size))


@router.get("/by-role/{role_name}", response_model=list[UserResponse])
async def list_users_by_role(
    role_name: str,
    users: Annotated[UserService, Depends(get_user_service)],
) -> list[UserResponse]:
    """List users holding a role (USER or ADMIN)."""
    return users.get_users_by_role(role_name)


@router.get("/stats/privacy", response_model=PrivacyStats)
async def privacy_stats(
    users: Annotated[UserService, Depends(get_user_service)],
) -> PrivacyStats:
    """Count users with privacy enabled."""
    return PrivacyStats(users_with_privacy_enabled=users.count_users_with_privacy_enabled())


@router.get("/email/{email}", response_model=UserResponse)
async def get_user_by_email(
    email: str,
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Get a user by email address."""
    user = users.get_user_by_email(email)
    if user is None:
        raise NotFoundError("User", "email", email)
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Get a user by ID."""
    user = users.get_user_by_id(user_id)
    if user is None:
        raise NotFoundError("User", "id", user_id)
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    update: UserUpdate,
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Update a user's first name, last name and phone."""
    return users.update_user(user_id, update)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
) -> Response:
    """Delete a user, its tickets and its avatar."""
    users.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/avatar", response_model=AvatarResponse)
async def upload_avatar(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
    file: UploadFile = File(...),
) -> AvatarResponse:
    """Upload an avatar image, replacing any previous one.

    Raises:
        InvalidArgumentError: If the file is empty, not an image or too large
        NotFoundError: If the user does not exist
    """
    if users.get_user_by_id(user_id) is None:
        raise NotFoundError("User", "id", user_id)

    content = await file.read()
    logger.info(f"Avatar upload for user {user_id}: {file.filename} ({len(content)} bytes, {file.content_type})")
    check_avatar_upload(content, file.content_type, settings.max_avatar_size)

    user = users.replace_avatar(user_id, file.filename or "avatar", content)
    return AvatarResponse(message="Avatar uploaded successfully", filename=user.avatar_filename)


@router.get("/{user_id}/avatar")
async def download_avatar(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
) -> Response:
    """Download a user's avatar image."""
    filename, content = users.read_avatar(user_id)
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.delete("/{user_id}/avatar", response_model=AvatarResponse)
async def delete_avatar(
    user_id: int,
    users: Annotated[UserService, Depends(get_user_service)],
) -> AvatarResponse:
    """Delete a user's avatar image."""
    users.remove_avatar(user_id)
    return AvatarResponse(message="Avatar deleted successfully")
