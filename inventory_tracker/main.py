from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from inventory_tracker.config import get_settings
from inventory_tracker.dependencies import create_store
from inventory_tracker.api import inventory, health

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")
    app.state.store = await create_store(settings)
    logger.info("Document store ready")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.store.close()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    A single-collection inventory tracker backed by a document store:

    - **Add / Remove**: Quantities go up or down one unit at a time
    - **Search**: Case-insensitive filtering by item name
    - **Remove All**: Atomic batch delete of every item

    ## Consistency
    Every mutation is followed by a full re-fetch of the inventory, so the
    returned view always reflects the store. Add and remove are read-then-write
    and may lose an update when two clients change the same item at once.
    """,
    version=settings.APP_VERSION,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(inventory.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
