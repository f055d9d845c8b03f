"""Business logic services."""

from user_registry.services.storage import (
    ImageStore,
    StorageError,
    UploadRejectedError,
    UploadTooLargeError,
)
from user_registry.services.users import DuplicateUserError, UserStore

__all__ = [
    "DuplicateUserError",
    "ImageStore",
    "StorageError",
    "UploadRejectedError",
    "UploadTooLargeError",
    "UserStore",
]
