import logging

from fastapi import Depends, Request

from inventory_tracker.config import Settings, get_settings
from inventory_tracker.database import create_engine_for
from inventory_tracker.services.inventory_repository import InventoryRepository
from inventory_tracker.stores.base import DocumentStore
from inventory_tracker.stores.memory_store import MemoryDocumentStore
from inventory_tracker.stores.redis_store import RedisDocumentStore
from inventory_tracker.stores.sql_store import SQLDocumentStore

logger = logging.getLogger(__name__)


async def create_store(settings: Settings) -> DocumentStore:
    """Build the document store selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "redis":
        logger.info("Using Redis document store")
        return RedisDocumentStore.from_url(settings.REDIS_URL)

    if settings.STORE_BACKEND == "memory":
        logger.info("Using in-memory document store")
        return MemoryDocumentStore()

    logger.info("Using SQL document store")
    store = SQLDocumentStore(create_engine_for(settings.DATABASE_URL))
    await store.create_schema()
    return store


def get_store(request: Request) -> DocumentStore:
    """Dependency returning the store opened by the application lifespan."""
    return request.app.state.store


def get_repository(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> InventoryRepository:
    return InventoryRepository(store, settings.INVENTORY_COLLECTION)
