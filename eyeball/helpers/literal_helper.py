"""Parse command-line values into Python literals."""

from __future__ import annotations

import ast
from typing import Any


def parse_value(raw: str) -> Any:
    """Interpret a CLI argument as a Python literal, falling back to the raw string.

    "3" -> 3, "[1, 2]" -> [1, 2], "None" -> None, "'x'" -> "x", "hello" -> "hello"
    """
    try:
        return ast.literal_eval(raw)
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
        return raw


def parse_keyword(raw: str) -> tuple[str, Any]:
    """Parse "name=value" into (name, literal value)."""
    name, sep, value = raw.partition("=")
    name = name.strip()
    if not sep or not name.isidentifier():
        msg = f"keyword argument must look like 'name=value', got '{raw}'"
        raise ValueError(msg)
    return name, parse_value(value)
