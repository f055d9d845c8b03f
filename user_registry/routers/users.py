"""User management API router."""

import json
import math
from dataclasses import dataclass
from typing import Any, TypeVar

from fastapi import APIRouter, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError
from starlette.datastructures import UploadFile

from user_registry.config import settings
from user_registry.deps import ImageStoreDep, UserStoreDep
from user_registry.logger import get_logger, log_exception
from user_registry.schemas import (
    MessageResponse,
    UserCreate,
    UserDetailResponse,
    UserListResponse,
    UserMutationResponse,
    UserResponse,
    UserSearchResponse,
    UserUpdate,
)
from user_registry.security import hash_password
from user_registry.services import (
    DuplicateUserError,
    ImageStore,
    StorageError,
    UploadRejectedError,
    UploadTooLargeError,
)
from user_registry.services.users import SortField, SortOrder
from user_registry.utils import (
    raise_bad_request,
    raise_internal_error,
    raise_not_found,
    raise_too_large,
)

router = APIRouter(prefix="/api/users", tags=["users"])
logger = get_logger(__name__)

USER_FIELDS = ("username", "email", "password")
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ImageUpload:
    filename: str
    content_type: str | None
    content: bytes


# --- Request body helpers ---


async def _read_user_payload(
    request: Request, images: ImageStore
) -> tuple[dict[str, Any], ImageUpload | None]:
    """Read user fields from a form or JSON body, plus the optional image file."""
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_CONTENT_TYPES):
        async with request.form() as form:
            fields = {key: form[key] for key in USER_FIELDS if isinstance(form.get(key), str)}
            image = form.get("image")
            if not isinstance(image, UploadFile) or not image.filename:
                return fields, None
            # One byte past the limit is enough to detect oversized files
            content = await image.read(images.max_bytes + 1)
            return fields, ImageUpload(image.filename, image.content_type, content)

    body = await request.body()
    if not body.strip():
        return {}, None
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise_bad_request("Malformed JSON body", cause=exc)
    if not isinstance(data, dict):
        raise_bad_request("Request body must be a JSON object")
    return data, None


def _validate(model: type[ModelT], fields: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False), body=fields) from exc


async def _store_image(images: ImageStore, upload: ImageUpload) -> str:
    try:
        return await run_in_threadpool(
            images.save,
            filename=upload.filename,
            content_type=upload.content_type,
            content=upload.content,
        )
    except UploadTooLargeError as exc:
        raise_too_large(str(exc), cause=exc)
    except UploadRejectedError as exc:
        raise_bad_request(str(exc), cause=exc)
    except StorageError as exc:
        log_exception(logger, exc, "Failed to store image", filename=upload.filename)
        raise_internal_error(str(exc), cause=exc)


async def _discard_image(images: ImageStore, image_path: str | None) -> None:
    """Best-effort removal of a file whose record write did not happen."""
    if not image_path:
        return
    try:
        await run_in_threadpool(images.delete, image_path)
    except StorageError as exc:
        logger.warning("Failed to clean up image after store error", image=image_path, error=str(exc))


# --- Endpoints ---


@router.get("", response_model=UserListResponse)
async def list_users(
    store: UserStoreDep,
    search: str | None = Query(None, description="Substring matched against username or email"),
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(
        settings.default_page_size, ge=1, le=settings.max_page_size, description="Page size"
    ),
    sort_by: SortField = Query("username", alias="sortBy", description="Field to sort by"),
    sort_order: SortOrder = Query("asc", alias="sortOrder", description="asc or desc"),
) -> UserListResponse:
    """List users with search, sorting and pagination."""
    try:
        records, total = await run_in_threadpool(
            store.list,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    except PyMongoError as exc:
        log_exception(logger, exc, "Failed to list users")
        raise_internal_error(str(exc), cause=exc)

    return UserListResponse(
        users=[UserResponse.model_validate(record) for record in records],
        total=total,
        page=page,
        pages=math.ceil(total / limit),
    )


@router.get("/search/{keyword}", response_model=UserSearchResponse)
async def search_users(keyword: str, store: UserStoreDep) -> UserSearchResponse:
    """Find users whose username or email contains the keyword."""
    try:
        records = await run_in_threadpool(store.search, keyword)
    except PyMongoError as exc:
        log_exception(logger, exc, "Failed to search users", keyword=keyword)
        raise_internal_error(str(exc), cause=exc)

    return UserSearchResponse(users=[UserResponse.model_validate(record) for record in records])


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(user_id: str, store: UserStoreDep) -> UserDetailResponse:
    """Get user by ID."""
    try:
        user = await run_in_threadpool(store.get_by_id, user_id)
    except PyMongoError as exc:
        log_exception(logger, exc, "Failed to load user", user_id=user_id)
        raise_internal_error(str(exc), cause=exc)

    if user is None:
        raise_not_found("User")

    return UserDetailResponse(user=UserResponse.model_validate(user))


@router.post("", response_model=UserMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    store: UserStoreDep,
    images: ImageStoreDep,
) -> UserMutationResponse:
    """
    Create a new user.

    Accepts multipart form fields ``username``, ``email``, ``password`` with an
    optional ``image`` file, or the same fields as a JSON object.
    """
    fields, upload = await _read_user_payload(request, images)
    user_data = _validate(UserCreate, fields)

    image_path = await _store_image(images, upload) if upload else ""
    document = {
        "username": user_data.username,
        "email": user_data.email,
        "password": await run_in_threadpool(hash_password, user_data.password),
        "image": image_path,
    }

    try:
        user = await run_in_threadpool(store.insert, document)
    except DuplicateUserError as exc:
        await _discard_image(images, image_path)
        raise_bad_request(str(exc), cause=exc)
    except PyMongoError as exc:
        await _discard_image(images, image_path)
        log_exception(logger, exc, "Failed to create user", username=user_data.username)
        raise_internal_error(str(exc), cause=exc)

    logger.info("User created", user_id=user["id"], has_image=bool(image_path))
    return UserMutationResponse(
        message="User created successfully",
        user=UserResponse.model_validate(user),
    )


@router.put("/{user_id}", response_model=UserMutationResponse)
async def update_user(
    user_id: str,
    request: Request,
    store: UserStoreDep,
    images: ImageStoreDep,
) -> UserMutationResponse:
    """
    Update user details.

    Fields missing from the request keep their stored values. A new ``image``
    replaces the previous one, whose file is removed once the record points at
    the new file.
    """
    fields, upload = await _read_user_payload(request, images)
    changes = _validate(UserUpdate, fields).model_dump(exclude_none=True)
    if "password" in changes:
        changes["password"] = await run_in_threadpool(hash_password, changes["password"])

    previous_image = ""
    new_image = ""
    if upload:
        try:
            existing = await run_in_threadpool(store.get_by_id, user_id)
        except PyMongoError as exc:
            log_exception(logger, exc, "Failed to load user", user_id=user_id)
            raise_internal_error(str(exc), cause=exc)
        if existing is None:
            raise_not_found("User")
        previous_image = existing["image"]
        new_image = await _store_image(images, upload)
        changes["image"] = new_image

    try:
        user = await run_in_threadpool(store.update_by_id, user_id, changes)
    except DuplicateUserError as exc:
        await _discard_image(images, new_image)
        raise_bad_request(str(exc), cause=exc)
    except PyMongoError as exc:
        await _discard_image(images, new_image)
        log_exception(logger, exc, "Failed to update user", user_id=user_id)
        raise_internal_error(str(exc), cause=exc)

    if user is None:
        await _discard_image(images, new_image)
        raise_not_found("User")

    if previous_image and previous_image != new_image:
        try:
            await run_in_threadpool(images.delete, previous_image)
        except StorageError as exc:
            # The record already references the new file; the old one is orphaned
            logger.warning("Failed to delete replaced image", image=previous_image, error=str(exc))

    return UserMutationResponse(
        message="User updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    store: UserStoreDep,
    images: ImageStoreDep,
) -> MessageResponse:
    """Delete a user together with their stored image."""
    try:
        user = await run_in_threadpool(store.get_by_id, user_id)
        if user is None:
            raise_not_found("User")

        if user["image"]:
            await run_in_threadpool(images.delete, user["image"])

        deleted = await run_in_threadpool(store.delete_by_id, user_id)
    except (PyMongoError, StorageError) as exc:
        log_exception(logger, exc, "Failed to delete user", user_id=user_id)
        raise_internal_error(str(exc), cause=exc)

    if not deleted:
        raise_not_found("User")

    logger.info("User deleted", user_id=user_id)
    return MessageResponse(message="User deleted successfully")
