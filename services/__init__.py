"""
Business logic services.

Each service handles one stage of the bulk import.
"""

from services.column_mapping import (
    auto_detect_mapping,
    seed_mapping,
    is_complete,
    missing_required_fields,
    ensure_complete,
)
from services.row_validator import (
    ValidRow,
    ValidationReport,
    validate_rows,
    validate_row,
    suggest_fix,
)
from services.inventory_store import (
    InventoryStore,
    SupabaseInventoryStore,
    get_inventory_store,
)
from services.duplicate_resolver import CandidateItem, ResolutionResult, resolve_duplicates
from services.bulk_applier import ApplyOutcome, ImportProgress, apply_candidates
from services.audit_log_service import (
    AuditLogService,
    get_audit_log_service,
    extract_request_metadata,
)
from services.import_reporter import (
    build_import_result,
    build_audit_payload,
    record_import_audit,
    generate_import_log_id,
)
from services.bulk_import_service import BulkImportService, get_bulk_import_service
from services.import_wizard import ImportWizardSession, WizardStep, ProgressStatus

__all__ = [
    # Column mapping
    "auto_detect_mapping",
    "seed_mapping",
    "is_complete",
    "missing_required_fields",
    "ensure_complete",
    # Validation
    "ValidRow",
    "ValidationReport",
    "validate_rows",
    "validate_row",
    "suggest_fix",
    # Store
    "InventoryStore",
    "SupabaseInventoryStore",
    "get_inventory_store",
    # Duplicates / apply
    "CandidateItem",
    "ResolutionResult",
    "resolve_duplicates",
    "ApplyOutcome",
    "ImportProgress",
    "apply_candidates",
    # Audit / reporting
    "AuditLogService",
    "get_audit_log_service",
    "extract_request_metadata",
    "build_import_result",
    "build_audit_payload",
    "record_import_audit",
    "generate_import_log_id",
    # Orchestration
    "BulkImportService",
    "get_bulk_import_service",
    "ImportWizardSession",
    "WizardStep",
    "ProgressStatus",
]
