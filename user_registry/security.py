"""Password hashing utilities."""

import base64
import hashlib

import bcrypt

from user_registry.config import settings


def _prehash(password: str) -> bytes:
    """Reduce a password of any length to a fixed 44-byte key.

    bcrypt rejects input longer than 72 bytes, so every password goes through
    SHA-256 first and the base64 digest is what bcrypt sees.
    """
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(digest)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_prehash(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Returns False for values that are not bcrypt hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(_prehash(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False
