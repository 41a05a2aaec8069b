"""
Free-text sanitization applied before imported text is persisted.
"""

import re
import unicodedata
from typing import Callable, Optional

# Control characters except tab, newline and carriage return.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

Sanitizer = Callable[[str], str]


def sanitize_text(text: Optional[str]) -> str:
    """
    Strip unsafe content from user supplied text.

    - Trims surrounding whitespace
    - Removes null bytes and other control characters (keeps \\t \\n \\r)
    - NFC-normalizes so the same word is stored the same way

    Idempotent: sanitize_text(sanitize_text(x)) == sanitize_text(x).

    Args:
        text: Raw text (non-strings yield "")

    Returns:
        Cleaned text
    """
    if not isinstance(text, str):
        return ""

    cleaned = _CONTROL_CHARS.sub("", text)
    cleaned = unicodedata.normalize("NFC", cleaned)
    return cleaned.strip()
