"""Run pytest as a child process and collect its reports."""

from __future__ import annotations

__all__ = ["PytestRun", "build_pytest_command", "run_pytest"]

import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from eyeball.components.testing.junit_comp import parse_coverage_json, parse_junit_xml
from eyeball.helpers.dto.testing_dto import CoverageReport, TestCaseResult, TestRunRequest
from eyeball.helpers.exceptions import SandboxTimeout, TestRunError
from eyeball.sandbox.launcher import build_safe_env

logger = logging.getLogger(__name__)

# pytest exit codes
EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_DESCRIPTIONS = {
    2: "test execution was interrupted",
    3: "internal pytest error",
    4: "pytest command line usage error",
    5: "no tests were collected",
}
MAX_OUTPUT_TAIL = 4000


@dataclass
class PytestRun:
    """Outcome of one pytest process."""

    exit_code: int
    command: list[str]
    cases: list[TestCaseResult] = field(default_factory=list)
    coverage: CoverageReport | None = None
    output_tail: str = ""

    @property
    def problem(self) -> str | None:
        """Why the run counts as an execution error, or None for exit 0/1."""
        if self.exit_code in (EXIT_OK, EXIT_TESTS_FAILED):
            return None
        return EXIT_DESCRIPTIONS.get(self.exit_code, f"pytest exited with code {self.exit_code}")


def build_pytest_command(
    python: Path,
    request: TestRunRequest,
    *,
    default_target: str,
    junit_path: Path,
    coverage_path: Path | None,
    package: str | None,
) -> list[str]:
    command = [
        str(python), "-m", "pytest",
        *(request.selectors or [default_target]),
        f"--junitxml={junit_path}",
        # xunit1 carries file and line attributes per testcase
        "-o", "junit_family=xunit1",
        "-q", "-p", "no:cacheprovider",
    ]
    if request.keyword:
        command += ["-k", request.keyword]
    if request.markers:
        command += ["-m", request.markers]
    if request.fail_fast:
        command.append("-x")
    if coverage_path is not None:
        command += [f"--cov={package or '.'}", f"--cov-report=json:{coverage_path}"]
    return command


def run_pytest(
    request: TestRunRequest,
    *,
    python: Path,
    root: Path,
    paths: list[Path],
    tests_dir: str,
    package: str | None,
    timeout: float,
) -> PytestRun:
    """Run pytest in `root` and parse its JUnit (and coverage) reports.

    Raises:
        SandboxTimeout: pytest exceeded `timeout` seconds
        TestRunError: pytest could not be launched or its report is unusable
    """
    with tempfile.TemporaryDirectory(prefix="eyeball-pytest-") as tmp:
        junit_path = Path(tmp) / "junit.xml"
        coverage_path = Path(tmp) / "coverage.json" if request.coverage else None
        command = build_pytest_command(
            python, request,
            default_target=tests_dir,
            junit_path=junit_path,
            coverage_path=coverage_path,
            package=package,
        )
        logger.info("Running: %s", " ".join(command))

        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                stdin=subprocess.DEVNULL,
                cwd=str(root),
                env=build_safe_env(paths),
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            msg = f"Test run timed out after {timeout:g}s"
            raise SandboxTimeout(msg) from e
        except OSError as e:
            msg = f"Failed to launch pytest with {python}: {e}"
            raise TestRunError(msg) from e

        output = (proc.stdout or "") + (proc.stderr or "")
        run = PytestRun(exit_code=proc.returncode, command=command, output_tail=output[-MAX_OUTPUT_TAIL:])

        if junit_path.exists():
            run.cases = parse_junit_xml(junit_path)
        elif run.problem is None:
            msg = "pytest finished without writing a JUnit report"
            raise TestRunError(msg)

        if coverage_path is not None:
            if coverage_path.exists():
                run.coverage = parse_coverage_json(coverage_path)
            elif run.problem is None:
                msg = "coverage requested but no report was written (is pytest-cov installed?)"
                raise TestRunError(msg)

    logger.info("pytest exit=%d cases=%d", run.exit_code, len(run.cases))
    return run
