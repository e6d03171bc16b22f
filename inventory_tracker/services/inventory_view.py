import enum
import logging
from typing import Awaitable, Callable, List, Optional

from inventory_tracker.schemas.inventory import InventoryItem
from inventory_tracker.services.inventory_repository import InventoryError, InventoryRepository

logger = logging.getLogger(__name__)


class ViewState(str, enum.Enum):
    """Enum for the view's fetch state."""
    IDLE = "idle"
    FETCHING = "fetching"


class InventoryView:
    """
    Holds the fetched inventory and its search-filtered projection.

    ``items`` mirrors the repository's sorted list and is only ever replaced
    wholesale by refresh(). ``filtered_items`` is recomputed whenever
    ``items`` or the search term changes. Every mutation is followed by a
    refresh so derived totals are never stale.

    Overlapping refreshes are not coordinated; the last one to finish wins.
    """

    def __init__(self, repository: InventoryRepository, search_term: str = ""):
        self.repository = repository
        self.items: List[InventoryItem] = []
        self.search_term = search_term or ""
        self.filtered_items: List[InventoryItem] = []
        self.state = ViewState.IDLE
        self.error: Optional[InventoryError] = None
        # True once the last requested mutation was written, whatever the refresh did
        self.committed = False

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    def set_search_term(self, search_term: str) -> None:
        self.search_term = search_term or ""
        self._recompute()

    def set_items(self, items: List[InventoryItem]) -> None:
        self.items = list(items)
        self._recompute()

    def _recompute(self) -> None:
        needle = self.search_term.lower()
        self.filtered_items = [item for item in self.items if needle in item.name.lower()]

    async def refresh(self) -> bool:
        """
        Re-fetch the inventory.

        On failure the error is recorded and ``items`` is left unchanged.

        Returns:
            True if the fetch succeeded
        """
        self.state = ViewState.FETCHING
        try:
            items = await self.repository.list_all()
        except InventoryError as e:
            self.error = e
            return False
        finally:
            self.state = ViewState.IDLE

        self.error = None
        self.set_items(items)
        return True

    async def add_item(self, name: str) -> bool:
        """Add one unit of ``name``, then refresh."""
        return await self._mutate(self.repository.add_one, name)

    async def remove_item(self, name: str) -> bool:
        """Remove one unit of ``name``, then refresh."""
        return await self._mutate(self.repository.remove_one, name)

    async def clear_all(self) -> bool:
        """Remove every item, then refresh."""
        return await self._mutate(self.repository.clear_all)

    async def _mutate(self, operation: Callable[..., Awaitable[None]], *args) -> bool:
        self.error = None
        self.committed = False
        try:
            await operation(*args)
        except InventoryError as e:
            logger.info(f"Inventory operation failed: {e}")
            self.error = e
            return False
        self.committed = True
        return await self.refresh()
