"""Authentication API router."""

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import PyMongoError

from user_registry.deps import UserStoreDep
from user_registry.logger import get_logger, log_exception
from user_registry.schemas import LoginRequest, LoginResponse, UserResponse
from user_registry.utils import raise_internal_error, raise_unauthorized

router = APIRouter(prefix="/api", tags=["auth"])
logger = get_logger(__name__)


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, store: UserStoreDep) -> LoginResponse:
    """Login with username and password."""
    try:
        user = await run_in_threadpool(store.find_by_credentials, data.username, data.password)
    except PyMongoError as exc:
        log_exception(logger, exc, "Login lookup failed", username=data.username)
        raise_internal_error(str(exc), cause=exc)

    if user is None:
        logger.warning("Failed login attempt", username=data.username)
        raise_unauthorized("Invalid username or password")

    logger.info("Successful login", user_id=user["id"])
    return LoginResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
    )
