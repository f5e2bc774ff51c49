"""Tests for the exception hierarchy."""

import pytest

from eyeball.helpers.exceptions import (
    EyeballError,
    ResolutionError,
    SandboxError,
    SandboxTimeout,
    SourceSyntaxError,
    TestRunError,
)

pytestmark = pytest.mark.unit


def test_error_types_are_stable() -> None:
    assert SourceSyntaxError("x").error_type == "SyntaxError"
    assert SandboxTimeout("x").error_type == "Timeout"
    assert TestRunError("x").error_type == "TestRunError"


def test_timeout_is_a_sandbox_error() -> None:
    assert issubclass(SandboxTimeout, SandboxError)
    assert issubclass(SandboxError, EyeballError)


def test_resolution_error_type_override() -> None:
    err = ResolutionError("gone", error_type="SymbolNotFound", file="a.py", line=4)
    assert err.error_type == "SymbolNotFound"
    assert ResolutionError("x").error_type == "ResolutionError"
    assert (err.message, err.file, err.line) == ("gone", "a.py", 4)
