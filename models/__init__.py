"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, CamelSchema
from models.inventory import Destination, InventoryItemResponse
from models.bulk_import import (
    FileKind,
    TargetField,
    REQUIRED_FIELDS,
    OPTIONAL_FIELDS,
    DuplicateHandling,
    ImportAction,
    ColumnMapping,
    ImportOptions,
    ImportRowData,
    RowError,
    ImportResult,
    ParsedUploadResponse,
    ValidateRequest,
    ValidationReportResponse,
    ImportRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    "CamelSchema",
    # Inventory
    "Destination",
    "InventoryItemResponse",
    # Bulk import
    "FileKind",
    "TargetField",
    "REQUIRED_FIELDS",
    "OPTIONAL_FIELDS",
    "DuplicateHandling",
    "ImportAction",
    "ColumnMapping",
    "ImportOptions",
    "ImportRowData",
    "RowError",
    "ImportResult",
    "ParsedUploadResponse",
    "ValidateRequest",
    "ValidationReportResponse",
    "ImportRequest",
]
