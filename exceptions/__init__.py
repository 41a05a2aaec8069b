"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Auth
    AuthenticationRequiredError,
    PermissionDeniedError,

    # File ingestion
    InvalidFileFormatError,
    FileTooLargeError,
    EmptyFileError,
    RowLimitExceededError,
    FileParseError,

    # Mapping / wizard
    MappingIncompleteError,
    InvalidStepTransitionError,
    ImportInProgressError,
    ImportPreviewNotFoundError,

    # Apply
    ItemApplyError,
    ImportAbortedError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Auth
    "AuthenticationRequiredError",
    "PermissionDeniedError",

    # File ingestion
    "InvalidFileFormatError",
    "FileTooLargeError",
    "EmptyFileError",
    "RowLimitExceededError",
    "FileParseError",

    # Mapping / wizard
    "MappingIncompleteError",
    "InvalidStepTransitionError",
    "ImportInProgressError",
    "ImportPreviewNotFoundError",

    # Apply
    "ItemApplyError",
    "ImportAbortedError",
]
