"""Tests for the result object contract."""

import json

import pytest
from eyeball.helpers.dto.result_dto import CheckOutcome, ExitCode, EyeballResult

pytestmark = pytest.mark.unit


def test_success_maps_to_exit_zero() -> None:
    result = EyeballResult.success("discover", "pkg.mod", {"classes": {}})
    assert result.status == "ok"
    assert result.exit_code() == ExitCode.OK == 0


def test_from_checks_all_passing_is_ok() -> None:
    result = EyeballResult.from_checks("probe", [CheckOutcome(name="a", passed=True)])
    assert result.status == "ok"
    assert result.summary is not None
    assert (result.summary.passed, result.summary.failed, result.summary.total) == (1, 0, 1)


def test_from_checks_with_failure_is_fail() -> None:
    checks = [CheckOutcome(name="a", passed=True), CheckOutcome(name="b", passed=False, detail="1 != 2")]
    result = EyeballResult.from_checks("probe", checks)
    assert result.status == "fail"
    assert result.exit_code() == ExitCode.FAILURE == 1
    assert result.summary is not None
    assert result.summary.failed == 1


def test_failure_carries_error_and_location() -> None:
    result = EyeballResult.failure("call", "ValueError", "bad", "pkg.f", file="pkg/f.py", line=3, traceback="tb")
    assert result.status == "error"
    assert result.exit_code() == ExitCode.ERROR == 2
    assert result.error is not None
    assert result.error.type == "ValueError"
    assert str(result.error.location) == "pkg/f.py:3"


def test_error_status_requires_error() -> None:
    with pytest.raises(ValueError):
        EyeballResult(status="error", command="x")


def test_ok_status_forbids_failed_check() -> None:
    with pytest.raises(ValueError):
        EyeballResult(status="ok", command="x", checks=[CheckOutcome(name="a", passed=False)])


def test_fail_status_requires_failed_check() -> None:
    with pytest.raises(ValueError):
        EyeballResult(status="fail", command="x", checks=[CheckOutcome(name="a", passed=True)])


def test_to_json_omits_none_fields() -> None:
    payload = json.loads(EyeballResult.success("config", data={"a": 1}).to_json())
    assert payload == {"status": "ok", "command": "config", "data": {"a": 1}, "checks": []}
