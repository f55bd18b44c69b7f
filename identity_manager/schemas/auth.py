"""Authentication schemas."""

from pydantic import BaseModel, EmailStr

from identity_manager.schemas.user import UserResponse


class UserLogin(BaseModel):
    """User login request schema."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Login response schema with token and user info."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
