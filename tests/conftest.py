import os

# Point the application at an in-memory SQLite store before it is imported
os.environ["STORE_BACKEND"] = "sql"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient

from inventory_tracker.main import app
from inventory_tracker.services.inventory_repository import InventoryRepository
from inventory_tracker.stores.memory_store import MemoryDocumentStore


@pytest.fixture(scope="function")
def client():
    """Create test client; each lifespan opens a fresh in-memory database."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def store():
    """Fresh in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture(scope="function")
def repository(store):
    """Repository over the memory store."""
    return InventoryRepository(store)
