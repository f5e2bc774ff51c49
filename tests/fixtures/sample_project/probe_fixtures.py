"""Fixtures available to probes in the sample project."""

from eyeball.fixtures import fixture
from samplepkg.shapes import Circle

unit_circle = Circle(1.0)


def big_circle():
    return Circle(10.0)


def ring(big_circle):
    return (unit_circle, big_circle)


@fixture(name="journal")
def make_journal():
    entries = ["opened"]
    yield entries
    entries.append("closed")


def exploding():
    raise RuntimeError("fixture setup failed")
