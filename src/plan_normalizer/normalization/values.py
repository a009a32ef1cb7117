"""Coercion helpers for attribute values found in textual plan output."""

from __future__ import annotations

import re
from typing import Any, Iterator, Optional, Tuple

_INTEGER = re.compile(r"^[+-]?\d+$")
_DECIMAL = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_ARROW = "->"


def coerce_attribute_value(raw: str) -> Any:
    """Convert the right-hand side of ``name = value`` into a Python value.

    One trailing comma is dropped. ``null``, booleans and decimal numbers are
    converted, a double-quoted string loses its quotes, and anything else
    (``{``, ``(known after apply)``, heredoc markers, ...) is returned as-is.
    """

    value = raw.strip()
    if value.endswith(","):
        value = value[:-1].rstrip()

    if value == "null":
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    if _INTEGER.match(value):
        return int(value)
    if _DECIMAL.match(value):
        return float(value)
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def strip_trailing_comment(raw: str) -> str:
    """Drop a ``# forces replacement``-style note that follows a value."""

    for index in _unquoted_indexes(raw):
        if raw[index] == "#" and index > 0 and raw[index - 1].isspace():
            return raw[:index].rstrip()
    return raw


def split_changed_value(raw: str) -> Optional[Tuple[str, str]]:
    """Split ``old -> new`` on the first arrow found outside a quoted string.

    Returns ``None`` when the value carries no arrow.
    """

    for index in _unquoted_indexes(raw):
        if raw.startswith(_ARROW, index):
            old = raw[:index].strip()
            new = raw[index + len(_ARROW):].strip()
            if not old or not new:
                return None
            return old, new
    return None


def _unquoted_indexes(raw: str) -> Iterator[int]:
    in_quotes = False
    escaped = False
    for index, char in enumerate(raw):
        if escaped:
            escaped = False
            continue
        if char == "\\" and in_quotes:
            escaped = True
            continue
        if char == '"':
            in_quotes = not in_quotes
            continue
        if not in_quotes:
            yield index


__all__ = ["coerce_attribute_value", "split_changed_value", "strip_trailing_comment"]
