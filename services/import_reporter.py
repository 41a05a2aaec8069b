"""
Result and audit reporting for bulk imports.

One ImportResult and exactly one audit entry per import, whatever the
number of rows. Bulk edit/delete audit per item; imports do not.
"""

import time
from typing import Optional
import structlog

from config import settings
from models.bulk_import import ImportOptions, ImportResult
from services.bulk_applier import ApplyOutcome
from services.duplicate_resolver import ResolutionResult
from services.row_validator import ValidationReport

logger = structlog.get_logger(__name__)


AUDIT_ACTION = "CREATE"
AUDIT_ENTITY = "InventoryItem"
# Not a record id: marks the entry as covering a whole import.
AUDIT_ENTITY_ID = "bulk-import"


def generate_import_log_id(now: Optional[float] = None) -> str:
    """
    Timestamp-derived id for display and log correlation.

    Two imports in the same millisecond get the same id; it is not
    a uniqueness guarantee.
    """
    now = time.time() if now is None else now
    return f"import-{int(now * 1000)}"


def build_import_result(
    report: ValidationReport,
    outcome: ApplyOutcome,
    max_errors: Optional[int] = None,
    import_log_id: Optional[str] = None,
) -> ImportResult:
    """
    Combine validation and apply accounting.

    failed_count counts invalid rows plus failed items. errors lists
    validation errors first, then apply errors, cut to max_errors.
    """
    max_errors = max_errors if max_errors is not None else settings.import_max_result_errors
    errors = [*report.errors, *outcome.errors]

    if len(errors) > max_errors:
        logger.info("import_errors_truncated", total=len(errors), kept=max_errors)

    return ImportResult(
        success_count=outcome.success_count,
        failed_count=report.invalid_count + outcome.failed_count,
        errors=errors[:max_errors],
        import_log_id=import_log_id or generate_import_log_id(),
    )


def build_audit_payload(
    report: ValidationReport,
    resolution: ResolutionResult,
    outcome: ApplyOutcome,
    options: ImportOptions,
) -> dict:
    return {
        "successCount": outcome.success_count,
        "failedCount": outcome.failed_count,
        "validationErrorCount": len(report.errors),
        "duplicateCount": len(resolution.duplicates),
        "totalRows": report.total_rows,
        "options": options.model_dump(mode="json", by_alias=True),
    }


def record_import_audit(
    audit_log,
    actor_id: str,
    payload: dict,
    request_metadata: Optional[dict[str, str]] = None,
) -> None:
    """Emit the single audit entry for an import. Never raises."""
    try:
        audit_log.record(
            actor_id=actor_id,
            action=AUDIT_ACTION,
            entity=AUDIT_ENTITY,
            entity_id=AUDIT_ENTITY_ID,
            payload=payload,
            request_metadata=request_metadata,
        )
    except Exception as e:
        logger.warning("import_audit_failed", actor_id=actor_id, error=str(e))
