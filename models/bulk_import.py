"""
Bulk import schemas.

Covers the column mapping, import options, the per-row validation
schema, error entries and the final import result.
"""

from pydantic import ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError
from typing import Any, Optional
from enum import Enum

from models.base import CamelSchema
from models.inventory import Destination


BATCH_PATTERN = r"^[A-Za-z0-9-]+$"
MAX_QUANTITY = 1_000_000


class FileKind(str, Enum):
    """Upload kinds the importer understands."""
    CSV = "csv"
    EXCEL = "xlsx"


class TargetField(str, Enum):
    """
    Target schema fields, in mapping priority order.

    Values are the names used on the wire and in error entries.
    """
    ITEM_NAME = "itemName"
    BATCH = "batch"
    QUANTITY = "quantity"
    REJECT = "reject"
    DESTINATION = "destination"
    CATEGORY = "category"
    NOTES = "notes"

    @property
    def attr(self) -> str:
        """Python attribute name on ColumnMapping / ImportRowData."""
        return _FIELD_ATTRS[self]


_FIELD_ATTRS = {
    TargetField.ITEM_NAME: "item_name",
    TargetField.BATCH: "batch",
    TargetField.QUANTITY: "quantity",
    TargetField.REJECT: "reject",
    TargetField.DESTINATION: "destination",
    TargetField.CATEGORY: "category",
    TargetField.NOTES: "notes",
}

REQUIRED_FIELDS: tuple[TargetField, ...] = (
    TargetField.ITEM_NAME,
    TargetField.BATCH,
    TargetField.QUANTITY,
    TargetField.DESTINATION,
)

OPTIONAL_FIELDS: tuple[TargetField, ...] = (
    TargetField.REJECT,
    TargetField.CATEGORY,
    TargetField.NOTES,
)


class DuplicateHandling(str, Enum):
    """What to do when a row's natural key already exists."""
    SKIP = "skip"
    UPDATE = "update"
    CREATE = "create"


class ImportAction(str, Enum):
    """Action assigned to a candidate item."""
    CREATE = "create"
    UPDATE = "update"


# ===================
# MAPPING & OPTIONS
# ===================

class ColumnMapping(CamelSchema):
    """
    Binding of each target field to a header name (None = unbound).

    Two fields may point at the same header; that is allowed but
    usually a mistake, see services.column_mapping.shared_headers.
    """

    item_name: Optional[str] = None
    batch: Optional[str] = None
    quantity: Optional[str] = None
    reject: Optional[str] = None
    destination: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None

    def get(self, field: TargetField) -> Optional[str]:
        return getattr(self, field.attr)

    def bind(self, field: TargetField, header: Optional[str]) -> "ColumnMapping":
        """Return a copy with one field bound (or cleared with None)."""
        return self.model_copy(update={field.attr: header or None})

    def bound_fields(self) -> dict[TargetField, str]:
        return {
            field: self.get(field)
            for field in TargetField
            if self.get(field) is not None
        }


class ImportOptions(CamelSchema):
    """
    Options chosen once per import.

    Defaults fill a row's destination/category only when its own
    cell is empty.
    """

    model_config = ConfigDict(frozen=True)

    duplicate_handling: DuplicateHandling = DuplicateHandling.SKIP
    default_destination: Optional[Destination] = None
    default_category: Optional[str] = Field(None, max_length=100)


# ===================
# ROW SCHEMA
# ===================

class ImportRowData(CamelSchema):
    """
    One mapped row after coercion.

    Built from a dict keyed by wire names (itemName, ...). Validation
    errors are reported with those names in their location.
    """

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    item_name: str = Field(..., min_length=2, max_length=100)
    batch: str = Field(..., min_length=3, max_length=50, pattern=BATCH_PATTERN)
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY, strict=True)
    reject: int = Field(default=0, ge=0, strict=True)
    destination: Destination
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("reject")
    @classmethod
    def reject_within_quantity(cls, v: int, info: ValidationInfo) -> int:
        """Rejected units cannot exceed received units."""
        quantity = info.data.get("quantity")
        if quantity is not None and v > quantity:
            raise PydanticCustomError(
                "reject_exceeds_quantity",
                "Reject count cannot exceed quantity",
            )
        return v

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.item_name, self.batch)

    @property
    def display_name(self) -> str:
        return f"{self.item_name} - {self.batch}"


# ===================
# ERRORS & RESULT
# ===================

class RowError(CamelSchema):
    """
    One diagnosable problem with one field of one row.

    row is the 1-based line in the uploaded file with the header on
    row 1, so the first data row is row 2. Apply failures use row 0
    and field "general".
    """

    model_config = ConfigDict(frozen=True)

    row: int
    field: str
    value: Any = None
    message: str
    suggestion: Optional[str] = None


class ImportResult(CamelSchema):
    """Outcome of one import attempt. Produced once, never retried."""

    success_count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0)
    errors: list[RowError] = Field(default_factory=list)
    import_log_id: str

    @property
    def message(self) -> str:
        return (
            f"Successfully imported {self.success_count} items. "
            f"{self.failed_count} items failed."
        )


# ===================
# HTTP PAYLOADS
# ===================

class ParsedUploadResponse(CamelSchema):
    """Response from the parse endpoint."""

    preview_id: str
    file_name: Optional[str] = None
    file_kind: FileKind
    headers: list[str]
    preview: list[dict[str, Any]]
    total_rows: int
    suggested_mapping: ColumnMapping
    mapping_complete: bool
    expires_in_minutes: int


class ValidateRequest(CamelSchema):
    """Validate a cached upload against a mapping."""

    preview_id: str
    mapping: ColumnMapping
    options: Optional[ImportOptions] = None


class ValidationReportResponse(CamelSchema):
    """Validation stage summary shown before options are chosen."""

    total_rows: int
    valid_count: int
    invalid_count: int
    errors: list[RowError]
    # header -> target fields, for columns feeding more than one field
    shared_headers: dict[str, list[str]] = Field(default_factory=dict)


class ImportRequest(CamelSchema):
    """
    Run an import.

    Either preview_id (a cached upload) or rows (already parsed
    records keyed by header) must be given.
    """

    preview_id: Optional[str] = None
    rows: Optional[list[dict[str, Any]]] = None
    mapping: ColumnMapping
    options: ImportOptions = Field(default_factory=ImportOptions)
