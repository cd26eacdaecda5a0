"""String splitting and printf-style formatting."""

from __future__ import annotations

from typing import Any


def split_any(text: str, delims: str) -> list[str]:
    """Split on any character in ``delims``; a trailing empty field is dropped."""
    parts: list[str] = []
    start = 0
    for index, char in enumerate(text):
        if char in delims:
            parts.append(text[start:index])
            start = index + 1
    if start != len(text):
        parts.append(text[start:])
    return parts


def split_char(text: str, delim: str) -> list[str]:
    """Split on the single character ``delim``; a trailing empty field is dropped."""
    if len(delim) != 1:
        raise ValueError("delimiter must be a single character")
    return split_any(text, delim)


def split_str(text: str, delim: str) -> list[str]:
    """Split on the substring ``delim``; a trailing empty field is dropped."""
    if not delim:
        raise ValueError("delimiter must not be empty")
    parts: list[str] = []
    start = 0
    while (found := text.find(delim, start)) != -1:
        parts.append(text[start:found])
        start = found + len(delim)
    if start < len(text):
        parts.append(text[start:])
    return parts


def format_string(fmt: str, *args: Any) -> str:
    """Format ``args`` into ``fmt`` with printf-style conversions."""
    return fmt % args