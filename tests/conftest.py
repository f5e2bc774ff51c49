"""
Pytest fixtures and configuration for the test suite.

Strategy:
- Static components are tested against a sample project copied into tmp_path
- Anything that spawns the sandbox or pytest is marked `integration`
- EYEBALL_* environment variables never leak into tests
"""

from __future__ import annotations

import shutil
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from eyeball.components.execution.runtime_comp import SandboxContext
from eyeball.services.eyeball_svc import EyeballService

SAMPLE_PROJECT = Path(__file__).parent / "fixtures" / "sample_project"

ENV_VARS = (
    "EYEBALL_CONFIG",
    "EYEBALL_PACKAGE",
    "EYEBALL_TESTS_DIR",
    "EYEBALL_FIXTURES_MODULE",
    "EYEBALL_TIMEOUT",
    "EYEBALL_PYTHON",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A private copy of tests/fixtures/sample_project."""
    root = tmp_path / "sample_project"
    shutil.copytree(SAMPLE_PROJECT, root, ignore=shutil.ignore_patterns("__pycache__", ".eyeball_cache"))
    return root


@pytest.fixture
def roots(sample_project: Path) -> list[Path]:
    return [sample_project]


@pytest.fixture
def service(sample_project: Path) -> EyeballService:
    return EyeballService(root=sample_project, overrides={"python": sys.executable})


@pytest.fixture
def sandbox(sample_project: Path) -> SandboxContext:
    return SandboxContext(
        python=Path(sys.executable),
        root=sample_project,
        paths=[sample_project],
        timeout=30.0,
        max_chars=20000,
        fixtures_module="probe_fixtures",
    )


@pytest.fixture
def restore_sys_path() -> Iterator[None]:
    """For in-process worker tests that prepend to sys.path."""
    saved = list(sys.path)
    yield
    sys.path[:] = saved


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: fast tests with no child processes")
    config.addinivalue_line("markers", "integration: spawns the sandbox interpreter or pytest")
    config.addinivalue_line("markers", "slow: mark test as slow running")
