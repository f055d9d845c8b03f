"""Document store connection management."""

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from pymongo import MongoClient

from user_registry.config import Settings, settings
from user_registry.logger import get_logger
from user_registry.services.users import UserStore

logger = get_logger(__name__)


def create_client(config: Settings | None = None) -> MongoClient:
    """Create a MongoDB client. The connection is established lazily."""
    config = config or settings
    return MongoClient(config.mongodb_url)


def open_user_store(client: MongoClient, config: Settings | None = None) -> UserStore:
    config = config or settings
    collection = client[config.mongodb_database][config.users_collection]
    return UserStore(collection)


async def init_db(store: UserStore) -> None:
    """Create the unique indexes the user store relies on."""
    await run_in_threadpool(store.ensure_indexes)
    logger.info(
        "Database initialized",
        database=store.collection.database.name,
        collection=store.collection.name,
    )


def get_user_store(request: Request) -> UserStore:
    """Dependency for the user store held by the running application."""
    return request.app.state.user_store
