"""
Parser for bulk inventory import uploads.

Turns the raw bytes of a CSV or Excel upload into a ParsedTable:
header names, every data row as a header -> raw cell dict, and a
verbatim preview of the first rows. No value coercion happens here;
that is the row validator's job.

Headers are the file's header row as pandas reads it: trimmed, and a
repeated name gets a numeric suffix ("Qty", "Qty.1") so every column
stays addressable by name.
"""

from dataclasses import dataclass, field
from io import BytesIO, StringIO
from pathlib import PurePath
from typing import Any, Optional, Union
import structlog

import pandas as pd

from config import settings
from exceptions import (
    InvalidFileFormatError,
    FileTooLargeError,
    EmptyFileError,
    RowLimitExceededError,
    FileParseError,
)
from models.bulk_import import FileKind

logger = structlog.get_logger(__name__)


_EXTENSION_KINDS = {
    ".csv": FileKind.CSV,
    ".xlsx": FileKind.EXCEL,
}


@dataclass(frozen=True)
class ParsedTable:
    """Structured content of one upload. Immutable once produced."""
    file_kind: FileKind
    headers: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]
    preview: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response / preview cache."""
        return {
            "file_kind": self.file_kind.value,
            "headers": list(self.headers),
            "rows": [dict(r) for r in self.rows],
            "preview": [dict(r) for r in self.preview],
        }


def detect_file_kind(filename: Optional[str]) -> FileKind:
    """
    Infer the upload kind from its file name.

    Raises:
        InvalidFileFormatError: Extension is not .csv or .xlsx
    """
    suffix = PurePath(filename or "").suffix.lower()
    kind = _EXTENSION_KINDS.get(suffix)
    if kind is None:
        raise InvalidFileFormatError(suffix or filename)
    return kind


def parse_import_file(
    content: bytes,
    kind: Union[FileKind, str],
    max_bytes: Optional[int] = None,
    max_rows: Optional[int] = None,
    preview_rows: Optional[int] = None,
) -> ParsedTable:
    """
    Parse an import upload.

    Args:
        content: Raw file bytes
        kind: FileKind (or its value, "csv" / "xlsx")
        max_bytes: Size limit, defaults to settings.import_max_file_bytes
        max_rows: Data row limit, defaults to settings.import_max_rows
        preview_rows: Preview length, defaults to settings.import_preview_rows

    Returns:
        ParsedTable with headers, all data rows and the preview

    Raises:
        InvalidFileFormatError: Unknown kind
        FileTooLargeError: More than max_bytes
        FileParseError: Bad encoding or unreadable workbook
        EmptyFileError: No data rows
        RowLimitExceededError: More than max_rows data rows
    """
    max_bytes = max_bytes if max_bytes is not None else settings.import_max_file_bytes
    max_rows = max_rows if max_rows is not None else settings.import_max_rows
    preview_rows = preview_rows if preview_rows is not None else settings.import_preview_rows

    try:
        kind = FileKind(kind)
    except ValueError:
        raise InvalidFileFormatError(str(kind))

    if len(content) > max_bytes:
        logger.warning("import_file_too_large", size=len(content), limit=max_bytes)
        raise FileTooLargeError(len(content), max_bytes)

    logger.info("parsing_import_file", kind=kind.value, size=len(content))

    if kind == FileKind.CSV:
        headers, rows = _read_csv(content)
    else:
        headers, rows = _read_excel(content)

    rows = [r for r in rows if not all(_is_blank(v) for v in r.values())]

    if not rows:
        logger.warning("import_file_empty", kind=kind.value)
        raise EmptyFileError()

    if len(rows) > max_rows:
        logger.warning("import_file_too_many_rows", rows=len(rows), limit=max_rows)
        raise RowLimitExceededError(len(rows), max_rows)

    table = ParsedTable(
        file_kind=kind,
        headers=tuple(headers),
        rows=tuple(rows),
        preview=tuple(dict(r) for r in rows[:preview_rows]),
    )

    logger.info(
        "import_file_parsed",
        kind=kind.value,
        headers=len(table.headers),
        rows=table.total_rows,
    )

    return table


# ===================
# READERS
# ===================

def _read_csv(content: bytes) -> tuple[list[str], list[dict[str, Any]]]:
    """Read delimited text; every cell stays a string."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.error("import_csv_decode_failed", error=str(e))
        raise FileParseError(
            message="File is not valid UTF-8 text",
            details={"original_error": str(e)}
        )

    if not text.strip():
        raise EmptyFileError()

    try:
        df = pd.read_csv(
            StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        raise EmptyFileError()
    except (pd.errors.ParserError, ValueError) as e:
        logger.error("import_csv_read_failed", error=str(e))
        raise FileParseError(
            message="Failed to read CSV file",
            details={"original_error": str(e)}
        )

    return _frame_to_records(df)


def _read_excel(content: bytes) -> tuple[list[str], list[dict[str, Any]]]:
    """Read the first sheet of a workbook; cell values are kept as read."""
    try:
        df = pd.read_excel(
            BytesIO(content),
            sheet_name=0,
            engine="openpyxl",
            dtype=object,
        )
    except Exception as e:
        logger.error("import_excel_read_failed", error=str(e))
        raise FileParseError(
            message="Failed to read Excel file",
            details={"original_error": str(e)}
        )

    return _frame_to_records(df)


def _frame_to_records(df: pd.DataFrame) -> tuple[list[str], list[dict[str, Any]]]:
    headers = [str(col).strip() for col in df.columns]
    rows = [
        {header: _clean_cell(value) for header, value in zip(headers, values)}
        for values in df.itertuples(index=False, name=None)
    ]
    return headers, rows


# ===================
# HELPER FUNCTIONS
# ===================

def _clean_cell(value: Any) -> Any:
    """NaN -> None, numpy scalars -> Python scalars."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        try:
            return value.item()
        except (AttributeError, ValueError):
            return value
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")
