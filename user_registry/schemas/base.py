"""Base schema classes shared by every response."""

from pydantic import BaseModel, ConfigDict


class BaseResponse(BaseModel):
    """Base for all API responses: every body carries a success flag."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = True


class MessageResponse(BaseResponse):
    """Response carrying a human-readable outcome message."""

    message: str
