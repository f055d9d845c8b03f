"""User Registry - FastAPI Application."""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from user_registry import __version__
from user_registry.config import Settings, settings
from user_registry.database import create_client, init_db, open_user_store
from user_registry.logger import configure_logging, get_logger
from user_registry.routers import auth, health, users
from user_registry.services import ImageStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - open the document store on startup, close it on shutdown."""
    config: Settings = app.state.settings
    client = create_client(config)
    app.state.user_store = open_user_store(client, config)
    await init_db(app.state.user_store)
    app.state.image_store.ensure_directory()
    logger.info("Application started", version=__version__)
    yield
    client.close()
    logger.info("Application shutting down")


async def logging_middleware(request: Request, call_next: Any) -> Response:
    """Middleware to inject Request-ID and log request details."""
    request_id = request.headers.get("X-Request-ID", str(uuid4()))

    # structlog.contextvars are isolated per async context/task
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start_time = time.perf_counter()
    try:
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger.info(
            "HTTP Request",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as exc:
        duration = time.perf_counter() - start_time
        logger.exception(
            "HTTP Request Failed",
            duration_ms=round(duration * 1000, 2),
            error=str(exc),
        )
        raise


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors with the API's success/message envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Invalid request data",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to ensure JSON response."""
    request_id = structlog.contextvars.get_contextvars().get("request_id") or request.headers.get(
        "X-Request-ID"
    )
    # The middleware re-raises before it can tag this response
    headers = {"X-Request-ID": request_id} if request_id else None
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": str(exc),
            "request_id": request_id,
        },
        headers=headers,
    )


def create_app(config: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    The user store is attached to ``app.state`` by the lifespan handler; the
    image store is created here because the static mount serves its directory.
    """
    config = config or settings

    app = FastAPI(
        title="User Registry API",
        description="User accounts with profile images, backed by MongoDB",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.image_store = ImageStore(
        config.upload_dir,
        url_prefix=config.upload_url_prefix,
        max_bytes=config.max_upload_bytes,
    )

    app.middleware("http")(logging_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(health.router)

    # check_dir=False: the directory is created at startup or on first upload
    app.mount(
        app.state.image_store.url_prefix,
        StaticFiles(directory=app.state.image_store.directory, check_dir=False),
        name="uploads",
    )

    return app


configure_logging()
app = create_app()
