"""
Inventory item schemas for validation and serialization.

Records are identified for reconciliation by their natural key
(item_name, batch) among non-deleted rows; the surrogate id is only
used once an update has been decided.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema


class Destination(str, Enum):
    """Sites an inventory batch is delivered to."""
    MAIS = "MAIS"
    FOZAN = "FOZAN"


class InventoryItemResponse(BaseSchema):
    """
    Stored inventory item.

    Mirrors a row of the inventory_items table.
    """

    id: str = Field(..., description="Item UUID")
    item_name: str = Field(..., description="Item name")
    batch: str = Field(..., description="Batch / lot code")
    quantity: int = Field(..., description="Units received")
    reject: int = Field(default=0, description="Units rejected")
    destination: Destination = Field(..., description="Delivery site")
    category: Optional[str] = Field(None, description="Free-text category")
    notes: Optional[str] = Field(None, description="Free-text notes")
    entered_by_id: Optional[str] = Field(None, description="Principal that created the record")
    created_at: Optional[datetime] = Field(default=None, description="Record creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")
    deleted_at: Optional[datetime] = Field(default=None, description="Soft-delete timestamp")

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.item_name, self.batch)
