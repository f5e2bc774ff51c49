"""Tests for probe/call request parsing."""

import pytest
from pydantic import ValidationError

from eyeball.helpers.dto.execution_dto import ExecRequest, PatchSpec, ProbeAssertion, ProbeRequest

pytestmark = pytest.mark.unit


class TestProbeAssertion:
    def test_labelled(self) -> None:
        a = ProbeAssertion.parse("positive:: area(2) > 0")
        assert (a.name, a.expr) == ("positive", "area(2) > 0")

    def test_bare_expression_is_named_after_itself(self) -> None:
        a = ProbeAssertion.parse("x == 1")
        assert (a.name, a.expr) == ("x == 1", "x == 1")

    def test_dict_slice_is_not_a_label(self) -> None:
        # "::" with an empty label falls back to a bare expression
        a = ProbeAssertion.parse("::1")
        assert a.expr == "::1"

    @pytest.mark.parametrize("raw", ["[1, 2, 3, 4][::2] == [1, 3]", "s[::-1] == 'cba'", "data[1::2]"])
    def test_slice_step_stays_in_expression(self, raw: str) -> None:
        a = ProbeAssertion.parse(raw)
        assert (a.name, a.expr) == (raw, raw)

    def test_label_with_spaces_and_dashes(self) -> None:
        a = ProbeAssertion.parse("every other - v2::[1, 2, 3][::2] == [1, 3]")
        assert (a.name, a.expr) == ("every other - v2", "[1, 2, 3][::2] == [1, 3]")


class TestPatchSpec:
    def test_parse(self) -> None:
        p = PatchSpec.parse("pkg.mod.LIMIT = 5")
        assert (p.target, p.expr) == ("pkg.mod.LIMIT", "5")

    def test_expression_may_contain_equals(self) -> None:
        p = PatchSpec.parse("pkg.mod.check=lambda x: x == 1")
        assert p.expr == "lambda x: x == 1"

    @pytest.mark.parametrize("raw", ["no_equals", "=5", "pkg.mod.x="])
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(ValueError):
            PatchSpec.parse(raw)

    def test_target_must_be_dotted(self) -> None:
        with pytest.raises(ValidationError):
            PatchSpec(target="LIMIT", expr="5")


def test_probe_requires_an_assertion() -> None:
    with pytest.raises(ValidationError):
        ProbeRequest(assertions=[])


def test_exec_requires_code() -> None:
    with pytest.raises(ValidationError):
        ExecRequest(code="")
