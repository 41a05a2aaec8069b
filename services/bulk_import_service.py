"""
Bulk import service.

Runs one import end to end: validation, duplicate resolution, apply,
result accounting and the audit entry. Partial success is a normal
outcome and is returned, not raised.
"""

from typing import Any, Callable, Iterable, Optional
import structlog

from config import settings
from models.bulk_import import ColumnMapping, ImportOptions, ImportResult
from exceptions import RowLimitExceededError, ValidationError
from services.column_mapping import ensure_complete
from services.inventory_store import get_inventory_store
from services.audit_log_service import get_audit_log_service
from services.row_validator import ValidationReport, validate_rows
from services.duplicate_resolver import resolve_duplicates
from services.bulk_applier import ImportProgress, apply_candidates
from services.import_reporter import (
    build_audit_payload,
    build_import_result,
    record_import_audit,
)
from utils.sanitize import Sanitizer, sanitize_text

logger = structlog.get_logger(__name__)


class BulkImportService:
    """
    Bulk import orchestration.

    Collaborators are injectable; by default the Supabase store and
    audit log are used.
    """

    def __init__(
        self,
        store=None,
        audit_log=None,
        sanitizer: Sanitizer = sanitize_text,
    ):
        if store is None:
            store = get_inventory_store()
        if audit_log is None:
            audit_log = get_audit_log_service()
        self.store = store
        self.audit_log = audit_log
        self.sanitizer = sanitizer

    def validate(
        self,
        rows: Iterable[dict[str, Any]],
        mapping: ColumnMapping,
        options: Optional[ImportOptions] = None,
    ) -> ValidationReport:
        """
        Validate rows without touching the store.

        Raises:
            MappingIncompleteError: Required field unbound
        """
        ensure_complete(mapping)
        return validate_rows(rows, mapping, options)

    def import_items(
        self,
        rows: Iterable[dict[str, Any]],
        mapping: ColumnMapping,
        options: ImportOptions,
        actor_id: str,
        request_metadata: Optional[dict[str, str]] = None,
        on_progress: Optional[Callable[[ImportProgress], None]] = None,
    ) -> ImportResult:
        """
        Import parsed rows.

        Args:
            rows: Parsed rows keyed by header, in file order
            mapping: Complete column mapping
            options: Duplicate handling and defaults
            actor_id: Principal the new records are attributed to
            request_metadata: ip_address / user_agent for the audit entry
            on_progress: Receives a progress snapshot after each item

        Returns:
            ImportResult (errors capped at settings.import_max_result_errors)

        Raises:
            ValidationError: No rows
            RowLimitExceededError: More than settings.import_max_rows rows
            MappingIncompleteError: Required field unbound
            DatabaseError: A duplicate lookup failed
        """
        rows = list(rows)

        if not rows:
            raise ValidationError("No rows to import", code="IMPORT_NO_ROWS")
        if len(rows) > settings.import_max_rows:
            raise RowLimitExceededError(len(rows), settings.import_max_rows)
        ensure_complete(mapping)

        logger.info(
            "import_started",
            actor_id=actor_id,
            rows=len(rows),
            duplicate_handling=options.duplicate_handling.value,
        )

        report = validate_rows(rows, mapping, options)
        resolution = resolve_duplicates(
            report.valid_rows,
            options.duplicate_handling,
            self.store,
            sanitizer=self.sanitizer,
        )
        outcome = apply_candidates(
            resolution.candidates,
            self.store,
            actor_id,
            sanitizer=self.sanitizer,
            on_progress=on_progress,
        )

        result = build_import_result(report, outcome)

        record_import_audit(
            self.audit_log,
            actor_id,
            build_audit_payload(report, resolution, outcome, options),
            request_metadata,
        )

        logger.info(
            "import_completed",
            import_log_id=result.import_log_id,
            succeeded=result.success_count,
            failed=result.failed_count,
            duplicates=len(resolution.duplicates),
        )

        return result


# Singleton instance for convenience
_bulk_import_service: Optional[BulkImportService] = None


def get_bulk_import_service() -> BulkImportService:
    """Get or create BulkImportService instance."""
    global _bulk_import_service
    if _bulk_import_service is None:
        _bulk_import_service = BulkImportService()
    return _bulk_import_service
