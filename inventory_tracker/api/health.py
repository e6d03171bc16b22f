from fastapi import APIRouter, Depends

from inventory_tracker.config import Settings, get_settings
from inventory_tracker.dependencies import get_store
from inventory_tracker.stores.base import DocumentStore

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the document store is reachable."
)
async def readiness_check(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings)
):
    """Readiness check for the configured document store."""
    store_ready = await store.ping()

    return {
        "status": "ready" if store_ready else "not_ready",
        "checks": {
            "store": store_ready,
            "backend": settings.STORE_BACKEND
        }
    }
