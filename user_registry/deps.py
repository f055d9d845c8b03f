"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from user_registry.deps import ImageStoreDep, UserStoreDep

    async def my_endpoint(store: UserStoreDep, images: ImageStoreDep):
        ...
"""

from typing import Annotated

from fastapi import Depends, Request

from user_registry.database import get_user_store
from user_registry.services import ImageStore, UserStore


def get_image_store(request: Request) -> ImageStore:
    """Dependency for the image store held by the running application."""
    return request.app.state.image_store


UserStoreDep = Annotated[UserStore, Depends(get_user_store)]
ImageStoreDep = Annotated[ImageStore, Depends(get_image_store)]

__all__ = ["ImageStoreDep", "UserStoreDep", "get_image_store"]
