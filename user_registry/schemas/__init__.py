"""Pydantic schemas package."""

from user_registry.schemas.auth import LoginRequest, LoginResponse
from user_registry.schemas.base import BaseResponse, MessageResponse
from user_registry.schemas.user import (
    UserCreate,
    UserDetailResponse,
    UserListResponse,
    UserMutationResponse,
    UserResponse,
    UserSearchResponse,
    UserUpdate,
)

__all__ = [
    "BaseResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "UserCreate",
    "UserDetailResponse",
    "UserListResponse",
    "UserMutationResponse",
    "UserResponse",
    "UserSearchResponse",
    "UserUpdate",
]
