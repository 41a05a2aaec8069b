"""
Unit tests for database connection management.

create_client is patched; nothing connects to Supabase.
"""

from unittest.mock import MagicMock, patch
import pytest

from config.database import (
    ConnectionError,
    check_connection,
    get_supabase_client,
    reset_connection,
)


@pytest.fixture
def mock_settings():
    with patch("config.database.settings") as mock:
        mock.supabase_configured = True
        mock.supabase_url = "https://example.supabase.co"
        mock.supabase_key = "anon-key"
        mock.inventory_table = "inventory_items"
        yield mock


@pytest.fixture(autouse=True)
def fresh_connection():
    reset_connection()
    yield
    reset_connection()


class TestGetSupabaseClient:
    """Tests for the cached client."""

    def test_client_is_cached(self, mock_settings):
        with patch("config.database.create_client") as mock_create:
            first = get_supabase_client()
            second = get_supabase_client()

        assert first is second
        mock_create.assert_called_once_with("https://example.supabase.co", "anon-key")

    def test_reset_connection_reconnects(self, mock_settings):
        with patch("config.database.create_client") as mock_create:
            get_supabase_client()
            reset_connection()
            get_supabase_client()

        assert mock_create.call_count == 2

    def test_missing_credentials(self, mock_settings):
        mock_settings.supabase_configured = False

        with pytest.raises(ConnectionError):
            get_supabase_client()

    def test_connect_failure_is_wrapped(self, mock_settings):
        with patch("config.database.create_client", side_effect=Exception("refused")):
            with pytest.raises(ConnectionError) as exc_info:
                get_supabase_client()

        assert "refused" in str(exc_info.value)


class TestCheckConnection:
    """Tests for check_connection."""

    def test_healthy(self, mock_settings):
        client = MagicMock()
        client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
            MagicMock(count=42)
        )

        with patch("config.database.create_client", return_value=client):
            status = check_connection()

        assert status == {"status": "healthy", "inventory_items_count": 42}
        client.table.assert_called_once_with("inventory_items")

    def test_unhealthy(self, mock_settings):
        mock_settings.supabase_configured = False

        status = check_connection()

        assert status["status"] == "unhealthy"
        assert "SUPABASE_URL" in status["error"]
