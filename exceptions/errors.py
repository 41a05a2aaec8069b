"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict
so routes can render it without knowing the concrete type.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "IMPORT_FILE_TOO_LARGE")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None,
        status_code: int = 422
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# AUTH ERRORS
# ===================

class AuthenticationRequiredError(AppError):
    """No acting principal supplied (401)."""

    def __init__(self):
        super().__init__(
            code="AUTH_REQUIRED",
            message="Authentication required",
            status_code=401
        )


class PermissionDeniedError(AppError):
    """Principal lacks the required permission (403)."""

    def __init__(self, permission: str):
        super().__init__(
            code="INSUFFICIENT_PERMISSIONS",
            message="You do not have permission to perform this action",
            status_code=403,
            details={"required": permission}
        )


# ===================
# FILE INGESTION ERRORS
# ===================

class InvalidFileFormatError(ValidationError):
    """Upload is neither delimited text nor a spreadsheet."""

    def __init__(self, provided: Optional[str]):
        super().__init__(
            code="IMPORT_INVALID_FORMAT",
            message="Invalid file type. Only CSV and Excel files are supported",
            details={"provided": provided, "valid": ["csv", "xlsx"]}
        )


class FileTooLargeError(ValidationError):
    """Upload exceeds the byte limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code="IMPORT_FILE_TOO_LARGE",
            message=f"File is too large. Maximum size is {limit // (1024 * 1024)} MB",
            details={"size": size, "limit": limit},
            status_code=413
        )


class EmptyFileError(ValidationError):
    """Upload contains no data rows."""

    def __init__(self):
        super().__init__(
            code="IMPORT_EMPTY_FILE",
            message="File is empty"
        )


class RowLimitExceededError(ValidationError):
    """Upload has more data rows than one import accepts."""

    def __init__(self, row_count: int, limit: int):
        super().__init__(
            code="IMPORT_TOO_MANY_ROWS",
            message=f"Maximum {limit:,} items per import. Please split your file.",
            details={"rows": row_count, "limit": limit}
        )


class FileParseError(ValidationError):
    """File bytes could not be decoded or read."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="IMPORT_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# MAPPING / WIZARD ERRORS
# ===================

class MappingIncompleteError(ValidationError):
    """Required target fields are not bound to a column."""

    def __init__(self, missing: list[str]):
        super().__init__(
            code="IMPORT_MAPPING_INCOMPLETE",
            message=f"Required fields are not mapped: {', '.join(missing)}",
            details={"missing": missing}
        )


class InvalidStepTransitionError(ConflictError):
    """Wizard step change refused by its guard."""

    def __init__(self, current_step: str, target_step: str, reason: str):
        super().__init__(
            code="IMPORT_INVALID_STEP_TRANSITION",
            message=f"Cannot move from {current_step} to {target_step}",
            details={
                "current_step": current_step,
                "target_step": target_step,
                "reason": reason,
            }
        )


class ImportInProgressError(ConflictError):
    """An apply is already outstanding for this session."""

    def __init__(self):
        super().__init__(
            code="IMPORT_IN_PROGRESS",
            message="An import is already being processed"
        )


class ImportPreviewNotFoundError(NotFoundError):
    """Cached upload expired or never existed."""

    def __init__(self, preview_id: str):
        super().__init__(
            resource="Import preview",
            identifier=preview_id,
            code="IMPORT_PREVIEW_NOT_FOUND"
        )


# ===================
# APPLY ERRORS
# ===================

class ItemApplyError(AppError):
    """A single create/update against the store failed."""

    def __init__(
        self,
        message: str,
        item_name: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="IMPORT_ITEM_FAILED",
            message=message,
            status_code=500,
            details={"item_name": item_name, **(details or {})}
        )


class ImportAbortedError(AppError):
    """Caller cancelled while the apply was outstanding."""

    def __init__(self):
        super().__init__(
            code="IMPORT_ABORTED",
            message=(
                "Import cancelled. Items already applied before the "
                "cancellation are not rolled back"
            ),
            status_code=499
        )
