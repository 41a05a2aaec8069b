"""
Row validator for bulk imports.

Projects every parsed row through the column mapping, coerces the
numeric fields and validates the result against ImportRowData.
Problems are collected as RowError entries, never raised: a row with
at least one error is simply left out of the later stages.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional
import structlog

from pydantic import ValidationError as PydanticValidationError

from models.bulk_import import (
    BATCH_PATTERN,
    ColumnMapping,
    ImportOptions,
    ImportRowData,
    RowError,
    TargetField,
    ValidationReportResponse,
)
from models.inventory import Destination

logger = structlog.get_logger(__name__)


# Header occupies row 1 of the file, so data row i (0-based) is i + 2.
FIRST_DATA_ROW = 2

_MESSAGES: dict[tuple[str, str], str] = {
    ("itemName", "missing"): "Item name is required",
    ("itemName", "string_too_short"): "Item name must be at least 2 characters",
    ("itemName", "string_too_long"): "Item name must not exceed 100 characters",
    ("batch", "missing"): "Batch is required",
    ("batch", "string_too_short"): "Batch must be at least 3 characters",
    ("batch", "string_too_long"): "Batch must not exceed 50 characters",
    ("batch", "string_pattern_mismatch"): "Batch must contain only alphanumeric characters and hyphens",
    ("quantity", "missing"): "Quantity is required",
    ("quantity", "int_type"): "Quantity must be an integer",
    ("quantity", "greater_than"): "Quantity must be positive",
    ("quantity", "less_than_equal"): "Quantity must not exceed 1,000,000",
    ("reject", "int_type"): "Reject must be an integer",
    ("reject", "greater_than_equal"): "Reject must be non-negative",
    ("destination", "missing"): "Destination is required",
    ("destination", "enum"): "Invalid destination",
    ("category", "string_too_long"): "Category must not exceed 100 characters",
    ("notes", "string_too_long"): "Notes must not exceed 5000 characters",
}

# Spellings and transliterations seen in uploaded sheets.
DESTINATION_ALIASES: dict[Destination, tuple[str, ...]] = {
    Destination.MAIS: ("MAIS", "ميس"),
    Destination.FOZAN: ("FOZAN", "فوزان"),
}

_TEXT_FIELDS = (
    TargetField.ITEM_NAME,
    TargetField.BATCH,
    TargetField.DESTINATION,
    TargetField.CATEGORY,
    TargetField.NOTES,
)
_INT_FIELDS = (TargetField.QUANTITY, TargetField.REJECT)
_INT_RE = re.compile(r"^[+-]?\d+(\.0+)?$")


@dataclass(frozen=True)
class ValidRow:
    """A row that passed validation, with its file row number."""
    row_number: int
    data: ImportRowData


@dataclass
class ValidationReport:
    """Outcome of validating every row of an upload."""
    total_rows: int
    valid_rows: list[ValidRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.valid_rows)

    @property
    def invalid_count(self) -> int:
        return self.total_rows - self.valid_count

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def to_response(
        self,
        max_errors: Optional[int] = None,
        shared_headers: Optional[dict[str, list[TargetField]]] = None,
    ) -> ValidationReportResponse:
        errors = self.errors if max_errors is None else self.errors[:max_errors]
        return ValidationReportResponse(
            total_rows=self.total_rows,
            valid_count=self.valid_count,
            invalid_count=self.invalid_count,
            errors=errors,
            shared_headers={
                header: [target.value for target in targets]
                for header, targets in (shared_headers or {}).items()
            },
        )


def validate_rows(
    rows: Iterable[dict[str, Any]],
    mapping: ColumnMapping,
    options: Optional[ImportOptions] = None,
) -> ValidationReport:
    """
    Validate all rows in file order.

    Args:
        rows: Parsed rows keyed by header
        mapping: Column mapping (may be incomplete; unbound required
            fields then fail on every row)
        options: When given, default destination/category fill empty cells

    Returns:
        ValidationReport with the full, uncapped error list
    """
    report = ValidationReport(total_rows=0)

    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        data, row_errors = validate_row(row, row_number, mapping, options)
        report.total_rows += 1
        if row_errors:
            report.errors.extend(row_errors)
        else:
            report.valid_rows.append(ValidRow(row_number=row_number, data=data))

    logger.info(
        "import_rows_validated",
        total=report.total_rows,
        valid=report.valid_count,
        errors=len(report.errors),
    )

    return report


def validate_row(
    row: dict[str, Any],
    row_number: int,
    mapping: ColumnMapping,
    options: Optional[ImportOptions] = None,
) -> tuple[Optional[ImportRowData], list[RowError]]:
    """Validate one row; returns (data, []) or (None, errors)."""
    projected = project_row(row, mapping, options)

    try:
        data = ImportRowData.model_validate(_coerce(projected))
    except PydanticValidationError as exc:
        return None, [
            _to_row_error(err, row_number, projected) for err in exc.errors()
        ]

    return data, []


def project_row(
    row: dict[str, Any],
    mapping: ColumnMapping,
    options: Optional[ImportOptions] = None,
) -> dict[str, Any]:
    """
    Pick each target field's raw cell, keyed by wire name.

    Unbound fields project to None. Option defaults replace blank
    destination/category cells.
    """
    projected: dict[str, Any] = {}
    for target in TargetField:
        header = mapping.get(target)
        projected[target.value] = row.get(header) if header is not None else None

    if options is not None:
        if options.default_destination and _is_blank(projected[TargetField.DESTINATION.value]):
            projected[TargetField.DESTINATION.value] = options.default_destination.value
        if options.default_category and _is_blank(projected[TargetField.CATEGORY.value]):
            projected[TargetField.CATEGORY.value] = options.default_category

    return projected


# ===================
# COERCION
# ===================

def _coerce(projected: dict[str, Any]) -> dict[str, Any]:
    """Blank cells are dropped so schema defaults/required checks apply."""
    coerced: dict[str, Any] = {}
    for target in _TEXT_FIELDS:
        value = _to_text(projected[target.value])
        if value is not None:
            coerced[target.value] = value
    for target in _INT_FIELDS:
        value = _to_int(projected[target.value])
        if value is not None:
            coerced[target.value] = value
    return coerced


def _to_text(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _to_int(value: Any) -> Any:
    """
    Whole numbers become int; anything else is passed through unchanged
    so the strict schema reports it.

    "12" -> 12, "12.0" -> 12, 7.0 -> 7, "12 pcs" -> "12 pcs", 2.5 -> 2.5
    """
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    text = str(value).strip()
    if _INT_RE.match(text):
        try:
            return int(text.split(".", 1)[0])
        except ValueError:
            # beyond the interpreter's int string limit
            return value
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


# ===================
# ERRORS & SUGGESTIONS
# ===================

def _to_row_error(err: dict, row_number: int, projected: dict[str, Any]) -> RowError:
    field_name = str(err["loc"][0]) if err.get("loc") else "general"
    value = projected.get(field_name)
    return RowError(
        row=row_number,
        field=field_name,
        value=value,
        message=_MESSAGES.get((field_name, err["type"]), err["msg"]),
        suggestion=suggest_fix(field_name, value),
    )


def suggest_fix(field_name: str, value: Any) -> Optional[str]:
    """
    Best-effort hint for a failing value. Advisory only, never applied.
    """
    if _is_blank(value):
        return None

    text = str(value).strip()

    if field_name in (TargetField.QUANTITY.value, TargetField.REJECT.value):
        if _is_number(text):
            return None
        digits = re.sub(r"\D", "", text)
        if digits:
            return f"Remove non-numeric characters (e.g. {digits.lstrip('0') or '0'})"
        return "Remove non-numeric characters and enter a whole number"

    if field_name == TargetField.DESTINATION.value:
        upper = text.upper()
        for destination, aliases in DESTINATION_ALIASES.items():
            if any(alias in upper for alias in aliases):
                return f"Use {destination.value}"
        return None

    if field_name == TargetField.BATCH.value:
        if re.match(BATCH_PATTERN, text):
            return None
        cleaned = re.sub(r"[^A-Za-z0-9-]", "", text)
        if cleaned:
            return f"Remove special characters (e.g. {cleaned})"
        return "Remove special characters; only letters, digits and hyphens are allowed"

    return None


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True
