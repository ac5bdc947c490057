"""Common utility functions."""

import re
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")


def get_value(obj: Any, key: str) -> Any:
    """Get value from dict or object attribute."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def collapse_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace into single spaces."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str | None, max_chars: int) -> str:
    """Cut text to at most max_chars, preferring a word boundary."""
    text = collapse_whitespace(text)
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars]
    boundary = cut.rfind(" ")
    if boundary > max_chars // 2:
        cut = cut[:boundary]
    return cut.rstrip()


def word_count(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split())
