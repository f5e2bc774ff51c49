"""Tests for snapshot diffs used by reload."""

import pytest

from eyeball.components.execution.reload_comp import diff_snapshots

pytestmark = pytest.mark.unit


def test_added_removed_changed() -> None:
    before = {
        "area": {"kind": "function", "signature": "(width, height=1.0)"},
        "old": {"kind": "function", "signature": "()"},
        "UNIT": {"kind": "instance", "signature": None},
    }
    after = {
        "area": {"kind": "function", "signature": "(width, height=2.0)"},
        "new": {"kind": "class", "signature": "()"},
        "UNIT": {"kind": "instance", "signature": None},
    }
    diff = diff_snapshots(before, after)
    assert diff["added"] == ["new"]
    assert diff["removed"] == ["old"]
    assert diff["changed"] == [{"name": "area", "before": before["area"], "after": after["area"]}]


def test_identical_snapshots() -> None:
    same = {"f": {"kind": "function", "signature": "()"}}
    assert diff_snapshots(same, dict(same)) == {"added": [], "removed": [], "changed": []}
