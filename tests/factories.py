"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Optional
from uuid import uuid4

import pandas as pd

from models.inventory import InventoryItemResponse
from exceptions import ItemApplyError

DEFAULT_HEADERS = ["Item Name", "Batch", "Quantity", "Reject", "Destination", "Category", "Notes"]


class ImportRowFactory:
    """
    Factory for parsed upload rows (header -> raw cell).

    Usage:
        # Create with defaults
        row = ImportRowFactory.create()

        # Create with overrides (use the header name)
        row = ImportRowFactory.create(**{"Quantity": "abc"})

        # Create multiple, each with a distinct batch
        rows = ImportRowFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        item_name: Optional[str] = None,
        batch: Optional[str] = None,
        quantity="100",
        reject="0",
        destination="MAIS",
        category: Optional[str] = "Consumables",
        notes: Optional[str] = None,
        **overrides,
    ) -> dict:
        """
        Create a single row keyed by DEFAULT_HEADERS.

        Returns:
            Row dict as produced by the upload parser
        """
        counter = cls._next_counter()
        row = {
            "Item Name": item_name or f"Surgical Gloves {counter}",
            "Batch": batch or f"LOT-{counter:05d}",
            "Quantity": quantity,
            "Reject": reject,
            "Destination": destination,
            "Category": category,
            "Notes": notes,
        }
        row.update(overrides)
        return row

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list:
        """Create multiple rows."""
        return [cls.create(**overrides) for _ in range(count)]

    @classmethod
    def reset_counter(cls):
        """Reset the counter."""
        cls._counter = 0


class InventoryItemFactory:
    """Factory for stored inventory_items records."""

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        item_name: str = "Surgical Gloves",
        batch: str = "LOT-00001",
        quantity: int = 50,
        reject: int = 0,
        destination: str = "MAIS",
        category: Optional[str] = None,
        notes: Optional[str] = None,
        entered_by_id: str = "user-original",
        deleted_at: Optional[str] = None,
    ) -> dict:
        """Create a single record dict matching the table schema."""
        now = datetime.now(timezone.utc).isoformat()

        return {
            "id": id or str(uuid4()),
            "item_name": item_name,
            "batch": batch,
            "quantity": quantity,
            "reject": reject,
            "destination": destination,
            "category": category,
            "notes": notes,
            "entered_by_id": entered_by_id,
            "created_at": now,
            "updated_at": now,
            "deleted_at": deleted_at,
        }


class UploadFileFactory:
    """Build upload bytes in memory."""

    @classmethod
    def csv(cls, rows: list, headers: Optional[list] = None, bom: bool = False) -> bytes:
        headers = headers or DEFAULT_HEADERS
        df = pd.DataFrame(rows, columns=headers)
        text = df.to_csv(index=False)
        return (("\ufeff" + text) if bom else text).encode("utf-8")

    @classmethod
    def xlsx(cls, rows: list, headers: Optional[list] = None) -> bytes:
        headers = headers or DEFAULT_HEADERS
        df = pd.DataFrame(rows, columns=headers)
        buffer = BytesIO()
        df.to_excel(buffer, index=False, engine="openpyxl")
        return buffer.getvalue()


# ===================
# IN-MEMORY STORE
# ===================

class InMemoryInventoryStore:
    """
    InventoryStore keeping records in a dict.

    fail_on: item names whose create/update raises ItemApplyError.
    """

    def __init__(self, items: Optional[list[dict]] = None, fail_on: Optional[set[str]] = None):
        self.items: dict[str, dict[str, Any]] = {}
        self.fail_on = set(fail_on or ())
        self.lookups: list[tuple[str, str]] = []
        self.created: list[dict[str, Any]] = []
        self.updated: list[tuple[str, dict[str, Any]]] = []
        for item in items or []:
            self.items[item["id"]] = dict(item)

    def find_by_natural_key(self, item_name: str, batch: str) -> Optional[InventoryItemResponse]:
        self.lookups.append((item_name, batch))
        for item in self.items.values():
            if (
                item["item_name"] == item_name
                and item["batch"] == batch
                and item.get("deleted_at") is None
            ):
                return InventoryItemResponse(**item)
        return None

    def create(self, fields: dict[str, Any]) -> InventoryItemResponse:
        if fields.get("item_name") in self.fail_on:
            raise ItemApplyError("Insert failed", item_name=fields.get("item_name"))
        now = datetime.now(timezone.utc).isoformat()
        item = {"id": str(uuid4()), "created_at": now, "updated_at": now, **fields}
        self.items[item["id"]] = item
        self.created.append(fields)
        return InventoryItemResponse(**item)

    def update(self, item_id: str, fields: dict[str, Any]) -> InventoryItemResponse:
        item = self.items.get(item_id)
        if item is None:
            raise ItemApplyError("Inventory item not found", details={"id": item_id})
        if item["item_name"] in self.fail_on:
            raise ItemApplyError("Update failed", item_name=item["item_name"])
        item.update(fields)
        self.updated.append((item_id, fields))
        return InventoryItemResponse(**item)

    def count(self) -> int:
        return len(self.items)


class RecordingAuditLog:
    """Audit log double keeping every entry."""

    def __init__(self, fail: bool = False):
        self.entries: list[dict[str, Any]] = []
        self.fail = fail

    def record(self, actor_id, action, entity, entity_id, payload, request_metadata=None):
        if self.fail:
            raise RuntimeError("audit store unavailable")
        entry = {
            "actor_id": actor_id,
            "action": action,
            "entity": entity,
            "entity_id": entity_id,
            "payload": payload,
            "request_metadata": request_metadata,
        }
        self.entries.append(entry)
        return entry


