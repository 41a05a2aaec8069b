"""
Temporary storage for parsed import uploads.

Holds each ParsedTable in memory between the parse, validate and
import calls, with TTL expiration. Single process only.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import structlog

from config import settings
from exceptions import ImportPreviewNotFoundError
from parsers.import_file_parser import ParsedTable

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CachedUpload:
    table: ParsedTable
    file_name: Optional[str] = None


_cache: dict[str, tuple[datetime, CachedUpload]] = {}


def store_preview(
    table: ParsedTable,
    file_name: Optional[str] = None,
    ttl_minutes: Optional[int] = None,
) -> str:
    """Store a parsed upload, return preview_id."""
    ttl = ttl_minutes if ttl_minutes is not None else settings.import_preview_ttl_minutes
    preview_id = str(uuid.uuid4())
    expires_at = datetime.now() + timedelta(minutes=ttl)
    _cache[preview_id] = (expires_at, CachedUpload(table=table, file_name=file_name))
    _cleanup_expired()
    return preview_id


def retrieve_preview(preview_id: str) -> Optional[CachedUpload]:
    """Retrieve an upload by preview_id. Returns None if expired/not found."""
    entry = _cache.get(preview_id)
    if entry is None:
        return None
    expires_at, upload = entry
    if datetime.now() > expires_at:
        del _cache[preview_id]
        logger.info("import_preview_expired", preview_id=preview_id)
        return None
    return upload


def require_preview(preview_id: str) -> CachedUpload:
    """
    Like retrieve_preview, but missing is an error.

    Raises:
        ImportPreviewNotFoundError: Unknown or expired preview_id
    """
    upload = retrieve_preview(preview_id)
    if upload is None:
        raise ImportPreviewNotFoundError(preview_id)
    return upload


def delete_preview(preview_id: str) -> bool:
    """Remove an upload after import or cancel. Returns whether it existed."""
    return _cache.pop(preview_id, None) is not None


def clear() -> None:
    _cache.clear()


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _cache.items() if now > exp]
    for k in expired:
        del _cache[k]
