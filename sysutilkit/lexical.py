"""Conversions between values through their text form, stream-extraction style."""

from __future__ import annotations

import re
from typing import Any

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class BadLexicalCast(ValueError):
    """The source value could not be interpreted as the target type."""

    def __init__(self) -> None:
        super().__init__(
            "bad lexical cast: source type could not be interpreted as target type"
        )


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return format(value, ".6g")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    return str(value)


def _parse(text: str, target: type) -> Any:
    text = text.lstrip()
    if target is str:
        token = text.split(None, 1)
        if not token:
            raise BadLexicalCast()
        return token[0]
    if target is bool:
        match = _INT_RE.match(text)
        if not match or int(match.group()) not in (0, 1):
            raise BadLexicalCast()
        return match.group().lstrip("+-") != "0"
    if target is int:
        match = _INT_RE.match(text)
        if not match:
            raise BadLexicalCast()
        return int(match.group())
    if target is float:
        match = _FLOAT_RE.match(text)
        if not match:
            raise BadLexicalCast()
        return float(match.group())
    raise TypeError(f"unsupported target type: {target!r}")


def lexical_cast(value: Any, target: type) -> Any:
    """Write ``value`` as text, then read the leading ``target`` from that text."""
    return _parse(_to_text(value), target)


def lexical_cast_or_default(value: Any, target: type) -> Any:
    """Like lexical_cast, but return ``target()`` when the conversion fails."""
    try:
        return lexical_cast(value, target)
    except BadLexicalCast:
        return target()