"""Result object returned by every eyeball operation.

## Status Contract

| Status | Exit code | Meaning                                              |
|--------|-----------|------------------------------------------------------|
| ok     | 0         | Operation ran; every check (if any) held             |
| fail   | 1         | Operation ran; at least one check did not hold       |
| error  | 2         | Operation itself could not be carried out            |

### Key Rules

1. status="error" if and only if `error` is set.
2. status="fail" requires at least one failed check; status="ok" forbids one.
3. `summary` is derived from `checks` and always present when checks exist.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

ResultStatus = Literal["ok", "fail", "error"]


class ExitCode(IntEnum):
    """Process exit codes for the CLI."""

    OK = 0
    FAILURE = 1
    ERROR = 2


class Location(BaseModel):
    """A file/line reference."""

    file: str | None = None
    line: int | None = None

    def __str__(self) -> str:
        if self.file and self.line:
            return f"{self.file}:{self.line}"
        return self.file or "<unknown>"


class ErrorInfo(BaseModel):
    """Why an operation could not be carried out."""

    type: str = Field(description="Exception or error category name, e.g. 'ImportError', 'Timeout'")
    message: str
    location: Location | None = None
    traceback: str | None = None


class CheckOutcome(BaseModel):
    """Outcome of a single named check (probe assertion, test case, ...)."""

    name: str
    passed: bool
    detail: str | None = None
    location: Location | None = None


class CheckSummary(BaseModel):
    """Pass/fail tally over a list of checks."""

    passed: int
    failed: int
    total: int

    @classmethod
    def from_checks(cls, checks: list[CheckOutcome]) -> CheckSummary:
        passed = sum(1 for c in checks if c.passed)
        return cls(passed=passed, failed=len(checks) - passed, total=len(checks))


class EyeballResult(BaseModel):
    """Structured result printed for every invocation."""

    status: ResultStatus
    command: str
    target: str | None = None
    data: Any = None
    checks: list[CheckOutcome] = Field(default_factory=list)
    summary: CheckSummary | None = None
    stdout: str | None = None
    stderr: str | None = None
    error: ErrorInfo | None = None
    duration_ms: float | None = None

    def model_post_init(self, __context: Any, /) -> None:
        """Validate result invariants."""
        if self.status == "error" and self.error is None:
            msg = "status='error' but error is not set"
            raise ValueError(msg)
        if self.status != "error" and self.error is not None:
            msg = f"status='{self.status}' but error is set"
            raise ValueError(msg)
        failed = any(not c.passed for c in self.checks)
        if self.status == "fail" and not failed:
            msg = "status='fail' but no check failed"
            raise ValueError(msg)
        if self.status == "ok" and failed:
            msg = "status='ok' but a check failed"
            raise ValueError(msg)
        if self.checks and self.summary is None:
            self.summary = CheckSummary.from_checks(self.checks)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def success(cls, command: str, target: str | None = None, data: Any = None, **extra: Any) -> EyeballResult:
        return cls(status="ok", command=command, target=target, data=data, **extra)

    @classmethod
    def from_checks(
        cls,
        command: str,
        checks: list[CheckOutcome],
        target: str | None = None,
        data: Any = None,
        **extra: Any,
    ) -> EyeballResult:
        """Build an ok/fail result from check outcomes."""
        status: ResultStatus = "fail" if any(not c.passed for c in checks) else "ok"
        return cls(status=status, command=command, target=target, data=data, checks=checks, **extra)

    @classmethod
    def failure(
        cls,
        command: str,
        error_type: str,
        message: str,
        target: str | None = None,
        *,
        file: str | None = None,
        line: int | None = None,
        traceback: str | None = None,
        **extra: Any,
    ) -> EyeballResult:
        """Build an execution-error result."""
        location = Location(file=file, line=line) if file or line else None
        return cls(
            status="error",
            command=command,
            target=target,
            error=ErrorInfo(type=error_type, message=message, location=location, traceback=traceback),
            **extra,
        )

    def exit_code(self) -> ExitCode:
        if self.status == "ok":
            return ExitCode.OK
        if self.status == "fail":
            return ExitCode.FAILURE
        return ExitCode.ERROR

    def to_json(self, *, indent: int | None = None) -> str:
        return self.model_dump_json(exclude_none=True, indent=indent)
