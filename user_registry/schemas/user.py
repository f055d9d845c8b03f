"""Pydantic schemas for users."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from user_registry.schemas.base import BaseResponse, MessageResponse

NonEmptyStr = Annotated[str, Field(min_length=1)]


class UserCreate(BaseModel):
    """Schema for creating a user."""

    username: NonEmptyStr
    email: NonEmptyStr
    password: NonEmptyStr


class UserUpdate(BaseModel):
    """Schema for updating a user. Absent fields keep their stored values."""

    model_config = ConfigDict(extra="ignore")

    username: NonEmptyStr | None = None
    email: NonEmptyStr | None = None
    password: NonEmptyStr | None = None


class UserResponse(BaseModel):
    """Public view of a user record. The password hash is never exposed."""

    id: str
    username: str
    email: str
    image: str = ""

    model_config = ConfigDict(from_attributes=True)


class UserDetailResponse(BaseResponse):
    user: UserResponse


class UserMutationResponse(MessageResponse):
    user: UserResponse


class UserListResponse(BaseResponse):
    """Page of users plus pagination metadata."""

    users: list[UserResponse]
    total: int  # Total count of users matching the filter (may exceed len(users))
    page: int
    pages: int


class UserSearchResponse(BaseResponse):
    users: list[UserResponse]
