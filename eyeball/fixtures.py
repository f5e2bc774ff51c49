"""Marker for probe fixtures.

A fixtures module (configured as ``fixtures_module``) provides fixtures as
plain module attributes, looked up by name:

- a function is called, with its required parameters filled from other fixtures
- a generator function is advanced once; the rest runs after the probe
- any other object is used as-is

The decorator is optional; use it to publish a fixture under another name::

    from eyeball.fixtures import fixture

    @fixture(name="db")
    def make_database():
        conn = connect(":memory:")
        yield conn
        conn.close()
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

# Must match FIXTURE_MARKER in eyeball/sandbox/worker.py
FIXTURE_MARKER = "__eyeball_fixture__"

F = TypeVar("F", bound=Callable[..., Any])


def fixture(func: F | None = None, *, name: str | None = None) -> Any:
    """Mark a function as a probe fixture, optionally under a different name."""

    def mark(fn: F) -> F:
        setattr(fn, FIXTURE_MARKER, name or fn.__name__)
        return fn

    if func is not None:
        return mark(func)
    return mark
