"""Test fixtures and configuration."""

import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import mongomock
import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# Set ENVIRONMENT for pydantic settings
os.environ["ENVIRONMENT"] = "testing"

from user_registry.config import settings  # noqa: E402
from user_registry.main import create_app  # noqa: E402
from user_registry.security import hash_password  # noqa: E402
from user_registry.services import ImageStore, UserStore  # noqa: E402


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the cheapest bcrypt cost so hashing does not dominate test time."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest.fixture
def user_store():
    """User store over an in-memory mongomock collection with unique indexes."""
    client = mongomock.MongoClient()
    store = UserStore(client["user_registry_test"]["users"])
    store.ensure_indexes()
    yield store
    client.close()


@pytest.fixture
def make_user(user_store: UserStore) -> Callable[..., dict[str, Any]]:
    """Insert a user directly into the store, hashing the password."""

    def _make_user(
        username: str,
        email: str | None = None,
        password: str = "password123",
        image: str = "",
    ) -> dict[str, Any]:
        return user_store.insert(
            {
                "username": username,
                "email": email or f"{username}@example.com",
                "password": hash_password(password),
                "image": image,
            }
        )

    return _make_user


@pytest.fixture
def app(tmp_path, user_store: UserStore) -> FastAPI:
    """Application wired to the mongomock store and a temporary upload directory.

    The lifespan handler is not run by ASGITransport, so the stores are attached
    to ``app.state`` here.
    """
    config = settings.model_copy(update={"upload_dir": tmp_path / "uploads"})
    application = create_app(config)
    application.state.user_store = user_store
    application.state.image_store.ensure_directory()
    return application


@pytest.fixture
def image_store(app: FastAPI) -> ImageStore:
    return app.state.image_store


@pytest_asyncio.fixture
async def client(app: FastAPI):
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client_instance:
        yield client_instance
