from fastapi import APIRouter, Depends, HTTPException, Query, status

from inventory_tracker.dependencies import get_repository
from inventory_tracker.schemas.inventory import InventoryViewResponse, ItemNameRequest
from inventory_tracker.services.inventory_repository import InvalidInput, InventoryRepository
from inventory_tracker.services.inventory_view import InventoryView

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _raise_for_error(view: InventoryView) -> None:
    """Turn the view's recorded error into an HTTP error."""
    if isinstance(view.error, InvalidInput):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=view.error_message)
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=view.error_message)


def _to_response(view: InventoryView) -> InventoryViewResponse:
    return InventoryViewResponse(
        items=view.filtered_items,
        total=len(view.items),
        matched=len(view.filtered_items),
        search=view.search_term,
        committed=view.committed,
        error=view.error_message,
    )


def _respond(view: InventoryView, succeeded: bool) -> InventoryViewResponse:
    # A write that went through is never reported as failed, even if the
    # re-fetch after it did not; the view is then stale and carries the error.
    if not succeeded and not view.committed:
        _raise_for_error(view)
    return _to_response(view)


@router.get(
    "/",
    response_model=InventoryViewResponse,
    summary="List inventory",
    description="Get every item sorted by name, filtered by an optional case-insensitive search term."
)
async def list_inventory(
    search: str = Query("", description="Case-insensitive substring of the item name"),
    repository: InventoryRepository = Depends(get_repository)
):
    """Get the inventory view."""
    view = InventoryView(repository, search)
    return _respond(view, await view.refresh())


@router.post(
    "/items",
    response_model=InventoryViewResponse,
    summary="Add a new item",
    description="Add one unit of the named item. The first add creates it with a random price."
)
async def create_item(
    item: ItemNameRequest,
    search: str = Query("", description="Search term for the returned view"),
    repository: InventoryRepository = Depends(get_repository)
):
    """
    Add an item by name.

    - **name**: Item name, must not be blank (required)
    """
    view = InventoryView(repository, search)
    return _respond(view, await view.add_item(item.name))


@router.post(
    "/items/{name:path}/add",
    response_model=InventoryViewResponse,
    summary="Add one unit",
    description="Increment an item's quantity, creating it if it does not exist."
)
async def add_one(
    name: str,
    search: str = Query("", description="Search term for the returned view"),
    repository: InventoryRepository = Depends(get_repository)
):
    """Add one unit of an item."""
    view = InventoryView(repository, search)
    return _respond(view, await view.add_item(name))


@router.post(
    "/items/{name:path}/remove",
    response_model=InventoryViewResponse,
    summary="Remove one unit",
    description="Decrement an item's quantity. The last unit deletes the item; unknown items are ignored."
)
async def remove_one(
    name: str,
    search: str = Query("", description="Search term for the returned view"),
    repository: InventoryRepository = Depends(get_repository)
):
    """Remove one unit of an item."""
    view = InventoryView(repository, search)
    return _respond(view, await view.remove_item(name))


@router.delete(
    "/items",
    response_model=InventoryViewResponse,
    summary="Remove all items",
    description="Delete every item in a single atomic batch."
)
async def clear_inventory(
    repository: InventoryRepository = Depends(get_repository)
):
    """Remove all items."""
    view = InventoryView(repository)
    return _respond(view, await view.clear_all())
