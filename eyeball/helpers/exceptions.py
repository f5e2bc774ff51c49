"""Custom exceptions used across multiple layers.

Rules:
- Only put exceptions here if they are raised in one layer and caught in another.
- Components raise; EyeballService catches once and turns them into error results.
- Verified failures (an assertion that does not hold) are never exceptions.
"""

from __future__ import annotations


class EyeballError(Exception):
    """Base class for errors that abort an eyeball operation."""

    error_type = "EyeballError"

    def __init__(self, message: str, *, file: str | None = None, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line


class ConfigError(EyeballError):
    """Raised when configuration files or values are invalid."""

    error_type = "ConfigError"


class ResolutionError(EyeballError):
    """Raised when a dotted name cannot be resolved to a module, file or symbol."""

    error_type = "ResolutionError"

    def __init__(
        self,
        message: str,
        *,
        error_type: str | None = None,
        file: str | None = None,
        line: int | None = None,
    ) -> None:
        super().__init__(message, file=file, line=line)
        if error_type:
            self.error_type = error_type


class SourceSyntaxError(EyeballError):
    """Raised when a located source file does not parse."""

    error_type = "SyntaxError"


class SandboxError(EyeballError):
    """Raised when the sandbox child process cannot run or answers garbage."""

    error_type = "SandboxError"


class SandboxTimeout(SandboxError):
    """Raised when the sandbox child process exceeds its time budget."""

    error_type = "Timeout"


class AnalysisError(EyeballError):
    """Raised when static dependency or import analysis cannot proceed."""

    error_type = "AnalysisError"


class TestRunError(EyeballError):
    """Raised when the test runner cannot be launched or its report is unusable."""

    __test__ = False
    error_type = "TestRunError"
