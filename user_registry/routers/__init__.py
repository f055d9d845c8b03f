"""API routers package."""

from user_registry.routers import auth, health, users

__all__ = [
    "auth",
    "health",
    "users",
]
