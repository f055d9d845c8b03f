"""Health check router."""

from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from user_registry.deps import UserStoreDep
from user_registry.logger import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
async def health_check(store: UserStoreDep) -> JSONResponse:
    """Check application health status with dependency checks.

    Returns 200 if the document store answers a ping, 503 otherwise.
    """
    checks = {}
    try:
        await run_in_threadpool(store.ping)
        checks["database"] = True
    except PyMongoError as exc:
        logger.warning("Health check: database ping failed", error=str(exc))
        checks["database"] = False

    all_healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "healthy" if all_healthy else "unhealthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        },
    )
