"""Tests for pytest command construction and exit-code handling."""

from pathlib import Path

import pytest

from eyeball.components.testing.pytest_runner_comp import PytestRun, build_pytest_command
from eyeball.helpers.dto.testing_dto import TestRunRequest

pytestmark = pytest.mark.unit


def test_default_command(tmp_path: Path) -> None:
    command = build_pytest_command(
        Path("/usr/bin/python3"),
        TestRunRequest(),
        default_target="tests",
        junit_path=tmp_path / "junit.xml",
        coverage_path=None,
        package="samplepkg",
    )
    assert command[:4] == ["/usr/bin/python3", "-m", "pytest", "tests"]
    assert f"--junitxml={tmp_path / 'junit.xml'}" in command
    assert "junit_family=xunit1" in command
    assert not any(arg.startswith("--cov") for arg in command)


def test_filters_and_coverage(tmp_path: Path) -> None:
    request = TestRunRequest(selectors=["tests/test_ok.py"], keyword="area", markers="not slow", fail_fast=True)
    command = build_pytest_command(
        Path("python"),
        request,
        default_target="tests",
        junit_path=tmp_path / "junit.xml",
        coverage_path=tmp_path / "cov.json",
        package="samplepkg",
    )
    assert command[3] == "tests/test_ok.py"
    assert "tests" not in command
    assert command[command.index("-k") + 1] == "area"
    assert command[command.index("-m", 3) + 1] == "not slow"
    assert "-x" in command
    assert "--cov=samplepkg" in command
    assert f"--cov-report=json:{tmp_path / 'cov.json'}" in command


@pytest.mark.parametrize(("code", "problem"), [(0, None), (1, None), (5, "no tests were collected"), (9, "pytest exited with code 9")])
def test_exit_code_problems(code: int, problem: str | None) -> None:
    assert PytestRun(exit_code=code, command=[]).problem == problem
