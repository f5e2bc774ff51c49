"""Test-runner DTOs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

TestOutcome = Literal["passed", "failed", "error", "skipped"]


class TestRunRequest(BaseModel):
    """Filters and options for one pytest invocation."""

    __test__ = False

    selectors: list[str] = Field(default_factory=list, description="Paths or node ids; default is tests_dir")
    keyword: str | None = Field(default=None, description="pytest -k expression")
    markers: str | None = Field(default=None, description="pytest -m expression")
    coverage: bool = False
    fail_fast: bool = False
    timeout: float | None = Field(default=None, ge=1.0, le=7200.0)


class TestCaseResult(BaseModel):
    """One test case parsed from a JUnit XML report."""

    __test__ = False

    nodeid: str
    outcome: TestOutcome
    duration_s: float = 0.0
    message: str | None = None
    file: str | None = None
    line: int | None = None


class CoverageReport(BaseModel):
    """Coverage totals and per-file percentages from a pytest-cov JSON report."""

    percent_covered: float
    covered_lines: int
    num_statements: int
    files: dict[str, float] = Field(default_factory=dict)
