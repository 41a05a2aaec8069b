"""
Unit tests for the upload preview cache.
"""

from datetime import datetime, timedelta
from unittest.mock import patch
import pytest

from models.bulk_import import FileKind
from parsers.import_file_parser import ParsedTable
from services import preview_cache_service
from exceptions import ImportPreviewNotFoundError


@pytest.fixture
def table():
    row = {"Item Name": "Gauze Pads"}
    return ParsedTable(file_kind=FileKind.CSV, headers=("Item Name",), rows=(row,), preview=(row,))


class TestPreviewCache:

    def test_store_and_retrieve(self, table):
        preview_id = preview_cache_service.store_preview(table, file_name="stock.csv")

        upload = preview_cache_service.retrieve_preview(preview_id)

        assert upload.table is table
        assert upload.file_name == "stock.csv"

    def test_unknown_id(self):
        assert preview_cache_service.retrieve_preview("nope") is None

    def test_require_raises_when_missing(self):
        with pytest.raises(ImportPreviewNotFoundError) as exc_info:
            preview_cache_service.require_preview("nope")

        assert exc_info.value.status_code == 404

    def test_expired_entry_is_gone(self, table):
        preview_id = preview_cache_service.store_preview(table, ttl_minutes=1)
        later = datetime.now() + timedelta(minutes=2)

        with patch("services.preview_cache_service.datetime") as mock_datetime:
            mock_datetime.now.return_value = later
            assert preview_cache_service.retrieve_preview(preview_id) is None

    def test_delete(self, table):
        preview_id = preview_cache_service.store_preview(table)

        assert preview_cache_service.delete_preview(preview_id) is True
        assert preview_cache_service.delete_preview(preview_id) is False
        assert preview_cache_service.retrieve_preview(preview_id) is None
