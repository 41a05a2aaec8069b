"""
Upload parsers module.
"""

from parsers.import_file_parser import (
    parse_import_file,
    detect_file_kind,
    ParsedTable,
)

__all__ = [
    "parse_import_file",
    "detect_file_kind",
    "ParsedTable",
]
