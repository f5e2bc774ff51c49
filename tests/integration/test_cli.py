"""CLI entry point: one JSON result on stdout and exit codes 0/1/2."""

import json
import sys
from pathlib import Path

import pytest

from eyeball.interfaces.cli.cli_main import main

pytestmark = pytest.mark.integration


def _run(capsys: pytest.CaptureFixture[str], root: Path, *argv: str) -> tuple[int, dict]:
    code = main(["--root", str(root), "--python", sys.executable, *argv])
    out = capsys.readouterr().out
    lines = out.strip().splitlines()
    assert len(lines) == 1, out
    return code, json.loads(lines[0])


def test_ok(capsys: pytest.CaptureFixture[str], sample_project: Path) -> None:
    code, payload = _run(capsys, sample_project, "discover", "samplepkg.shapes", "--no-docs")
    assert code == 0
    assert payload["status"] == "ok"
    assert payload["data"]["functions"]["area"]["summary"] == "Area of a rectangle."


def test_failed_probe_exits_one(capsys: pytest.CaptureFixture[str], sample_project: Path) -> None:
    code, payload = _run(
        capsys, sample_project, "probe", "--module", "samplepkg.shapes", "wrong::area(2, 2) == 5", "-a", "ok::area(1) == 1"
    )
    assert code == 1
    assert payload["status"] == "fail"
    assert payload["summary"] == {"passed": 1, "failed": 1, "total": 2}


def test_error_exits_two(capsys: pytest.CaptureFixture[str], sample_project: Path) -> None:
    code, payload = _run(capsys, sample_project, "inspect", "samplepkg.broken")
    assert code == 2
    assert payload["error"]["type"] == "RuntimeError"


def test_call_with_literals(capsys: pytest.CaptureFixture[str], sample_project: Path) -> None:
    code, payload = _run(capsys, sample_project, "call", "samplepkg.shapes.area", "2.5", "-k", "height=4")
    assert code == 0
    assert payload["data"]["value"] == 10.0


def test_exec_from_stdin(
    capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch, sample_project: Path
) -> None:
    import io

    monkeypatch.setattr("sys.stdin", io.StringIO("x = 20\nx + 1\n"))
    code, payload = _run(capsys, sample_project, "exec", "-")
    assert code == 0
    assert payload["data"]["value"] == 21


@pytest.mark.parametrize(
    "argv",
    [["no-such-command"], ["call"], ["call", "samplepkg.shapes.area", "-k", "3"], ["probe", "--patch", "nope", "x::True"]],
)
def test_usage_errors(capsys: pytest.CaptureFixture[str], sample_project: Path, argv: list[str]) -> None:
    code, payload = _run(capsys, sample_project, *argv)
    assert code == 2
    assert payload["error"]["type"] == "UsageError"


def test_probe_without_assertions_is_usage_error(capsys: pytest.CaptureFixture[str], sample_project: Path) -> None:
    code, payload = _run(capsys, sample_project, "probe", "--module", "samplepkg.shapes")
    assert code == 2
    assert payload["error"]["type"] == "UsageError"


def test_pretty_output(capsys: pytest.CaptureFixture[str], sample_project: Path) -> None:
    code = main(["--root", str(sample_project), "--python", sys.executable, "--pretty", "probe", "--module", "samplepkg.shapes", "ok::area(2) == 2"])
    out = capsys.readouterr().out
    assert code == 0
    assert "1/1 checks passed" in out
    assert '"status": "ok"' in out


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0
    assert "usage: eyeball" in capsys.readouterr().out
