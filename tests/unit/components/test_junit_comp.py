"""Tests for JUnit XML and coverage JSON parsing."""

import json
from pathlib import Path

import pytest

from eyeball.components.testing.junit_comp import parse_coverage_json, parse_junit_xml, to_checks
from eyeball.helpers.exceptions import TestRunError

pytestmark = pytest.mark.unit

JUNIT = """<?xml version="1.0" encoding="utf-8"?>
<testsuites>
  <testsuite name="pytest" errors="0" failures="1" skipped="1" tests="4">
    <testcase classname="tests.test_ok" file="tests/test_ok.py" line="5" name="test_area" time="0.002"/>
    <testcase classname="tests.test_ok.TestSquare" file="tests/test_ok.py" line="15" name="test_square" time="0.001"/>
    <testcase classname="tests.test_ok" file="tests/test_ok.py" line="9" name="test_later" time="0.000">
      <skipped type="pytest.skip" message="not today">tests/test_ok.py:10: not today</skipped>
    </testcase>
    <testcase classname="tests.test_bad" file="tests/test_bad.py" line="3" name="test_wrong_area" time="0.003">
      <failure message="assert 4 == 5">def test_wrong_area():
&gt;       assert area(2, 2) == 5
E       assert 4 == 5</failure>
    </testcase>
  </testsuite>
</testsuites>
"""


@pytest.fixture
def junit_file(tmp_path: Path) -> Path:
    path = tmp_path / "junit.xml"
    path.write_text(JUNIT)
    return path


def test_parse_cases(junit_file: Path) -> None:
    cases = parse_junit_xml(junit_file)
    assert [c.nodeid for c in cases] == [
        "tests/test_ok.py::test_area",
        "tests/test_ok.py::TestSquare::test_square",
        "tests/test_ok.py::test_later",
        "tests/test_bad.py::test_wrong_area",
    ]
    assert [c.outcome for c in cases] == ["passed", "passed", "skipped", "failed"]
    assert cases[0].line == 6
    assert cases[3].message.startswith("assert 4 == 5")
    assert "E       assert 4 == 5" in cases[3].message


def test_checks(junit_file: Path) -> None:
    checks = to_checks(parse_junit_xml(junit_file))
    assert [c.passed for c in checks] == [True, True, True, False]
    assert checks[2].detail == "skipped: not today"
    assert checks[3].detail.startswith("failed: assert 4 == 5")
    assert str(checks[3].location) == "tests/test_bad.py:4"


def test_nodeid_without_file_attribute(tmp_path: Path) -> None:
    path = tmp_path / "junit.xml"
    path.write_text('<testsuite><testcase classname="tests.test_x.TestY" name="test_z"/></testsuite>')
    assert parse_junit_xml(path)[0].nodeid == "tests/test_x.py::TestY::test_z"


def test_malformed_report(tmp_path: Path) -> None:
    path = tmp_path / "junit.xml"
    path.write_text("<testsuite>")
    with pytest.raises(TestRunError):
        parse_junit_xml(path)
    with pytest.raises(TestRunError):
        parse_junit_xml(tmp_path / "missing.xml")


def test_coverage_json(tmp_path: Path) -> None:
    path = tmp_path / "coverage.json"
    path.write_text(json.dumps({
        "totals": {"percent_covered": 87.5123, "covered_lines": 7, "num_statements": 8},
        "files": {"samplepkg/shapes.py": {"summary": {"percent_covered": 87.5123}}},
    }))
    report = parse_coverage_json(path)
    assert report.percent_covered == 87.51
    assert report.files == {"samplepkg/shapes.py": 87.51}


def test_coverage_json_missing_totals(tmp_path: Path) -> None:
    path = tmp_path / "coverage.json"
    path.write_text("{}")
    with pytest.raises(TestRunError):
        parse_coverage_json(path)
