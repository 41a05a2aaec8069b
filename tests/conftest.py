"""
Shared test fixtures.

The import engine is exercised against an in-memory store and a
recording audit log; the Supabase-backed classes get a MagicMock client.
"""

import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import MagicMock

from models.bulk_import import ColumnMapping
from tests.factories import InMemoryInventoryStore, RecordingAuditLog


# ===================
# FIXTURES
# ===================

@pytest.fixture
def store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore()


@pytest.fixture
def audit_log() -> RecordingAuditLog:
    return RecordingAuditLog()


@pytest.fixture
def mock_supabase() -> MagicMock:
    """
    MagicMock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.table.return_value.insert.return_value.execute.return_value.data = [...]
    """
    return MagicMock()


@pytest.fixture
def full_mapping() -> ColumnMapping:
    """Every target field bound to its conventional header."""
    return ColumnMapping(
        item_name="Item Name",
        batch="Batch",
        quantity="Quantity",
        reject="Reject",
        destination="Destination",
        category="Category",
        notes="Notes",
    )


@pytest.fixture
def required_mapping() -> ColumnMapping:
    """Only the required fields bound."""
    return ColumnMapping(
        item_name="Item Name",
        batch="Batch",
        quantity="Quantity",
        destination="Destination",
    )


@pytest.fixture(autouse=True)
def reset_preview_cache():
    """Preview cache is module state; start every test empty."""
    from services import preview_cache_service
    preview_cache_service.clear()
    yield
    preview_cache_service.clear()


# ===================
# API TEST CLIENT
# ===================

WRITER_HEADERS = {
    "X-User-Id": "user-123",
    "X-User-Permissions": "inventory:read,inventory:write",
}


@pytest.fixture
def writer_headers() -> dict:
    return dict(WRITER_HEADERS)


@pytest.fixture
def test_client():
    """
    FastAPI test client. Database health is not checked.

    Usage:
        def test_endpoint(test_client, writer_headers):
            response = test_client.post("/api/inventory/import/parse", headers=writer_headers, ...)
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
