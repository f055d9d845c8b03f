"""Storage service for uploaded profile images."""

from __future__ import annotations

import random
import time
from pathlib import Path, PurePosixPath

from user_registry.config import settings
from user_registry.logger import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif", "webp"})


class StorageError(Exception):
    """Raised when storage operations fail."""


class UploadRejectedError(StorageError):
    """Raised when an upload is not an accepted image."""


class UploadTooLargeError(StorageError):
    """Raised when an upload exceeds the size limit."""


def _format_size(num_bytes: int) -> str:
    if num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}MB"
    return f"{num_bytes} bytes"


def generate_filename(filename: str) -> str:
    """Build a collision-resistant name keeping the original extension."""
    suffix = PurePosixPath(filename or "").suffix
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


class ImageStore:
    """Local filesystem store for images served under a public URL prefix."""

    def __init__(
        self,
        directory: Path | str | None = None,
        *,
        url_prefix: str | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self.directory = Path(directory if directory is not None else settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_upload_bytes

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def validate(self, filename: str | None, content_type: str | None) -> None:
        """Accept files whose extension or declared content type marks an image."""
        extension = PurePosixPath(filename or "").suffix.lower().lstrip(".")
        is_image_type = (content_type or "").lower().startswith("image/")
        if extension in ALLOWED_EXTENSIONS or is_image_type:
            return
        raise UploadRejectedError(
            f"Only image files are accepted (filename={filename}, content_type={content_type})"
        )

    def save(self, *, filename: str | None, content_type: str | None, content: bytes) -> str:
        """Persist an uploaded image and return its public path."""
        self.validate(filename, content_type)
        if len(content) > self.max_bytes:
            raise UploadTooLargeError(f"Image exceeds {_format_size(self.max_bytes)} limit")

        stored_name = generate_filename(filename or "")
        try:
            self.ensure_directory()
            (self.directory / stored_name).write_bytes(content)
        except OSError as exc:
            logger.error("Failed to write image", path=str(self.directory / stored_name), error=str(exc))
            raise StorageError(f"Failed to store {filename}") from exc

        logger.info("Image stored", stored_name=stored_name, size=len(content))
        return f"{self.url_prefix}/{stored_name}"

    def resolve(self, image_path: str | None) -> Path | None:
        """Map a stored public path to its file inside the content directory."""
        if not image_path:
            return None
        name = PurePosixPath(image_path).name
        if not name:
            return None
        return self.directory / name

    def delete(self, image_path: str | None) -> bool:
        """Delete a stored image. Missing files are ignored."""
        path = self.resolve(image_path)
        if path is None:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.error("Failed to delete image", path=str(path), error=str(exc))
            raise StorageError(f"Failed to delete {image_path}") from exc

        logger.info("Image deleted", path=str(path))
        return True
