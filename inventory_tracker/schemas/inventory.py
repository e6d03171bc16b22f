from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field

CENTS = Decimal("0.01")


class InventoryItem(BaseModel):
    """An item in stock, as read from the inventory collection."""
    name: str = Field(..., min_length=1, description="Item name, also the document key")
    quantity: int = Field(..., ge=0, description="Units in stock")
    price: Decimal = Field(..., ge=0, description="Unit price, fixed when the item is created")
    last_updated: datetime = Field(..., description="Store-assigned time of the last write")

    @computed_field
    @property
    def total_price(self) -> Decimal:
        """Quantity times unit price, rounded to cents."""
        return (self.price * self.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)

    @computed_field
    @property
    def display_name(self) -> str:
        return self.name[:1].upper() + self.name[1:]


class ItemNameRequest(BaseModel):
    """Schema for adding an item by name."""
    name: str = Field(..., description="Name of the item to add one unit of")


class InventoryViewResponse(BaseModel):
    """Schema for the filtered inventory view."""
    items: list[InventoryItem]
    total: int = Field(..., description="Number of items in the inventory")
    matched: int = Field(..., description="Number of items matching the search term")
    search: str = ""
    committed: bool = Field(False, description="Whether a requested change was written to the store")
    error: Optional[str] = Field(None, description="Set when the view could not be refreshed after a change")
