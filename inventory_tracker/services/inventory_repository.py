import logging
import random
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from inventory_tracker.schemas.inventory import CENTS, InventoryItem
from inventory_tracker.stores.base import Document, DocumentStore, StoreError

logger = logging.getLogger(__name__)

# Persisted field names
QUANTITY = "quantity"
PRICE = "price"
LAST_UPDATED = "lastUpdated"


class InventoryError(Exception):
    """Base class for errors surfaced to the user. str() is the user-visible message."""
    pass


class InvalidInput(InventoryError):
    """Exception raised when an item name is empty or blank."""
    pass


class FetchFailure(InventoryError):
    """Exception raised when the inventory could not be read."""
    pass


class WriteFailure(InventoryError):
    """Exception raised when an add, remove or clear could not be written."""
    pass


def generate_price(rng: Optional[random.Random] = None) -> Decimal:
    """Random unit price in [1.00, 5.00), in whole cents."""
    rng = rng or random
    return Decimal(rng.randrange(100, 500)) / 100


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        timestamp = value
    elif isinstance(value, str) and value:
        timestamp = datetime.fromisoformat(value)
    else:
        return datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


class InventoryRepository:
    """
    Translates inventory operations into document store calls.

    Each item is one document of the inventory collection, keyed by the
    item name, with ``quantity``, ``price`` and ``lastUpdated`` fields.
    A document never persists with a quantity below 1: removing the last
    unit deletes it.

    CONCURRENCY:
    ============
    add_one and remove_one read the document, then write it back. Two
    callers working on the same item at the same time can both read the
    same quantity, and one of the updates is lost. The store contract has
    no transactional increment, so this gap is accepted rather than masked.
    clear_all is atomic through the store's batch delete.
    """

    FETCH_FAILED = "Failed to fetch inventory. Please try again."
    ADD_FAILED = "Failed to add item. Please try again."
    REMOVE_FAILED = "Failed to remove item. Please try again."
    CLEAR_FAILED = "Failed to remove all items. Please try again."
    INVALID_NAME = "Invalid item name"

    def __init__(
        self,
        store: DocumentStore,
        collection: str = "inventory",
        price_generator: Callable[[], Decimal] = generate_price,
    ):
        self.store = store
        self.collection = collection
        self.price_generator = price_generator

    async def list_all(self) -> List[InventoryItem]:
        """
        Fetch every item, sorted by name.

        Returns:
            Items in ascending name order

        Raises:
            FetchFailure: If the store fails or holds a malformed document
        """
        try:
            documents = await self.store.list_documents(self.collection)
            items = [self._to_item(document) for document in documents]
        except StoreError as e:
            logger.error(f"Error fetching inventory: {e}")
            raise FetchFailure(self.FETCH_FAILED) from e
        except (KeyError, TypeError, ValueError, InvalidOperation, ValidationError) as e:
            logger.error(f"Malformed inventory document: {e}")
            raise FetchFailure(self.FETCH_FAILED) from e

        items.sort(key=lambda item: item.name)
        logger.info(f"Fetched {len(items)} inventory items")
        return items

    async def add_one(self, name: str) -> None:
        """
        Add one unit of an item, creating it on first add.

        A new item starts at quantity 1 with a freshly generated price.
        An existing item has its quantity incremented; its price is kept.

        Raises:
            InvalidInput: If the name is empty or blank
            WriteFailure: If the store fails
        """
        self._validate(name)
        try:
            existing = await self.store.get_document(self.collection, name)
            if existing is not None:
                await self.store.set_document(
                    self.collection,
                    name,
                    {
                        QUANTITY: int(existing[QUANTITY]) + 1,
                        PRICE: existing[PRICE],
                        LAST_UPDATED: self.store.server_timestamp(),
                    },
                    merge=True,
                )
                logger.info(f"Added one '{name}' (quantity {int(existing[QUANTITY]) + 1})")
            else:
                price = self.price_generator()
                await self.store.set_document(
                    self.collection,
                    name,
                    {
                        QUANTITY: 1,
                        PRICE: float(price),
                        LAST_UPDATED: self.store.server_timestamp(),
                    },
                )
                logger.info(f"Created '{name}' at price {price}")
        except (StoreError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error adding item '{name}': {e}")
            raise WriteFailure(self.ADD_FAILED) from e

    async def remove_one(self, name: str) -> None:
        """
        Remove one unit of an item.

        Removing the last unit deletes the document. Removing an item that
        does not exist does nothing.

        Raises:
            InvalidInput: If the name is empty or blank
            WriteFailure: If the store fails
        """
        self._validate(name)
        try:
            existing = await self.store.get_document(self.collection, name)
            if existing is None:
                logger.info(f"Remove of missing item '{name}' ignored")
                return

            quantity = int(existing[QUANTITY])
            if quantity <= 1:
                await self.store.delete_document(self.collection, name)
                logger.info(f"Deleted '{name}'")
            else:
                await self.store.set_document(
                    self.collection,
                    name,
                    {
                        QUANTITY: quantity - 1,
                        LAST_UPDATED: self.store.server_timestamp(),
                    },
                    merge=True,
                )
                logger.info(f"Removed one '{name}' (quantity {quantity - 1})")
        except (StoreError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error removing item '{name}': {e}")
            raise WriteFailure(self.REMOVE_FAILED) from e

    async def clear_all(self) -> None:
        """
        Delete every item in one atomic batch.

        Raises:
            WriteFailure: If the store fails; the collection is then unchanged
        """
        try:
            documents = await self.store.list_documents(self.collection)
            await self.store.delete_many(self.collection, {document.key for document in documents})
        except StoreError as e:
            logger.error(f"Error removing all items: {e}")
            raise WriteFailure(self.CLEAR_FAILED) from e
        logger.info(f"All items removed successfully ({len(documents)} deleted)")

    def _validate(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            logger.error(self.INVALID_NAME)
            raise InvalidInput(self.INVALID_NAME)

    def _to_item(self, document: Document) -> InventoryItem:
        fields: Dict[str, Any] = document.fields
        return InventoryItem(
            name=document.key,
            quantity=int(fields[QUANTITY]),
            price=Decimal(str(fields[PRICE])).quantize(CENTS),
            last_updated=_parse_timestamp(fields.get(LAST_UPDATED)),
        )
