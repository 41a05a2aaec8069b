"""
Inventory record store used by the import engine.

The engine only needs three operations: a natural-key point lookup
among non-deleted records, create and update. InventoryStore is that
contract; SupabaseInventoryStore is the production implementation.
"""

from typing import Any, Optional, Protocol
import structlog

from config import get_supabase_client, settings
from models.inventory import InventoryItemResponse
from exceptions import DatabaseError, ItemApplyError

logger = structlog.get_logger(__name__)


class InventoryStore(Protocol):
    """Keyed store of inventory items."""

    def find_by_natural_key(self, item_name: str, batch: str) -> Optional[InventoryItemResponse]:
        ...

    def create(self, fields: dict[str, Any]) -> InventoryItemResponse:
        ...

    def update(self, item_id: str, fields: dict[str, Any]) -> InventoryItemResponse:
        ...


class SupabaseInventoryStore:
    """
    InventoryStore backed by the inventory_items table.

    Each call is one independent request; no locking and no
    cross-call transaction.
    """

    def __init__(self, client=None, table: Optional[str] = None):
        self.db = client or get_supabase_client()
        self.table = table or settings.inventory_table

    def find_by_natural_key(self, item_name: str, batch: str) -> Optional[InventoryItemResponse]:
        """
        Find a non-deleted item by (item_name, batch).

        Raises:
            DatabaseError: If the query fails
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("item_name", item_name)
                .eq("batch", batch)
                .is_("deleted_at", "null")
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_inventory_item_failed",
                item_name=item_name,
                batch=batch,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return InventoryItemResponse(**result.data[0])

    def create(self, fields: dict[str, Any]) -> InventoryItemResponse:
        """
        Insert one item.

        Raises:
            ItemApplyError: If the insert fails or returns nothing
        """
        try:
            result = self.db.table(self.table).insert(fields).execute()
        except Exception as e:
            raise ItemApplyError(str(e), item_name=fields.get("item_name")) from e

        if not result.data:
            raise ItemApplyError("Insert returned no record", item_name=fields.get("item_name"))

        return InventoryItemResponse(**result.data[0])

    def update(self, item_id: str, fields: dict[str, Any]) -> InventoryItemResponse:
        """
        Update one item by id.

        Raises:
            ItemApplyError: If the update fails or the item is gone
        """
        try:
            result = (
                self.db.table(self.table)
                .update(fields)
                .eq("id", item_id)
                .execute()
            )
        except Exception as e:
            raise ItemApplyError(str(e), details={"id": item_id}) from e

        if not result.data:
            raise ItemApplyError("Inventory item not found", details={"id": item_id})

        return InventoryItemResponse(**result.data[0])


# Singleton instance for convenience
_inventory_store: Optional[SupabaseInventoryStore] = None


def get_inventory_store() -> SupabaseInventoryStore:
    """Get or create SupabaseInventoryStore instance."""
    global _inventory_store
    if _inventory_store is None:
        _inventory_store = SupabaseInventoryStore()
    return _inventory_store
