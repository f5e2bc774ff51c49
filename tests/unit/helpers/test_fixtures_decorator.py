"""Tests for the probe fixture decorator."""

import pytest

from eyeball.fixtures import FIXTURE_MARKER, fixture
from eyeball.sandbox import worker

pytestmark = pytest.mark.unit


def test_marker_matches_worker() -> None:
    assert FIXTURE_MARKER == worker.FIXTURE_MARKER


def test_bare_and_named_forms() -> None:
    @fixture
    def database():
        return "db"

    @fixture(name="cache")
    def make_cache():
        return {}

    assert getattr(database, FIXTURE_MARKER) == "database"
    assert getattr(make_cache, FIXTURE_MARKER) == "cache"
    assert make_cache() == {}


def test_worker_finds_fixture_by_published_name() -> None:
    import types

    module = types.ModuleType("fake_fixtures")

    @fixture(name="journal")
    def make_journal():
        return []

    module.make_journal = make_journal
    assert worker.find_fixture(module, "journal") is make_journal
    with pytest.raises(LookupError):
        worker.find_fixture(module, "missing")
