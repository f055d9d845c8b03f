"""Pydantic schemas for authentication."""

from pydantic import BaseModel

from user_registry.schemas.base import MessageResponse
from user_registry.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Schema for user login."""

    username: str
    password: str


class LoginResponse(MessageResponse):
    """Schema for login response - returns the public user fields."""

    user: UserResponse
