"""Worker request handling, run in-process against standard-library targets."""

import dataclasses
import math

import pytest

from eyeball.sandbox import worker

pytestmark = [pytest.mark.unit, pytest.mark.usefixtures("restore_sys_path")]


def _assertion(name: str, expr: str) -> dict:
    return {"name": name, "expr": expr}


class TestResolution:
    def test_inspect_builtin(self) -> None:
        response = worker.handle({"op": "inspect", "target": "math.sqrt"})
        assert response["ok"] is True
        assert response["result"]["kind"] == "builtin"

    def test_inspect_class(self) -> None:
        response = worker.handle({"op": "inspect", "target": "collections.OrderedDict"})
        result = response["result"]
        assert result["kind"] == "class"
        assert result["mro"][-1] == "builtins.object"

    def test_missing_module(self) -> None:
        response = worker.handle({"op": "inspect", "target": "no_such_module_for_eyeball"})
        assert response["ok"] is False
        assert response["error"]["type"] == "ModuleNotFoundError"

    def test_missing_attribute(self) -> None:
        response = worker.handle({"op": "inspect", "target": "json.not_there"})
        assert response["error"]["type"] == "AttributeError"
        assert response["error"]["message"] == "'json' has no attribute 'not_there'"

    def test_unknown_op(self) -> None:
        assert worker.handle({"op": "fly"})["error"]["type"] == "UnknownOperation"


class TestCallAndExec:
    def test_call(self) -> None:
        response = worker.handle({"op": "call", "target": "math.hypot", "args": [3, 4]})
        assert response["result"]["value"] == 5.0
        assert response["result"]["type"] == "builtins.float"

    def test_call_not_callable(self) -> None:
        response = worker.handle({"op": "call", "target": "math.pi"})
        assert response["error"]["type"] == "TypeError"

    def test_exec_returns_last_expression(self) -> None:
        response = worker.handle({"op": "exec", "code": "print('side effect')\nx = 2\nx * 21"})
        assert response["result"] == {"has_value": True, "value": 42, "repr": "42", "type": "builtins.int"}
        assert response["stdout"] == "side effect\n"

    def test_exec_without_value(self) -> None:
        response = worker.handle({"op": "exec", "code": "x = 1"})
        assert response["result"] == {"has_value": False}

    def test_exec_syntax_error_location(self) -> None:
        response = worker.handle({"op": "exec", "code": "x = (\n"})
        assert response["error"]["type"] == "SyntaxError"
        assert response["error"]["file"] == "<exec>"

    def test_exec_exception_location(self) -> None:
        response = worker.handle({"op": "exec", "code": "x = 1\n1 / 0"})
        assert response["error"]["type"] == "ZeroDivisionError"
        assert (response["error"]["file"], response["error"]["line"]) == ("<exec>", 2)


class TestProbe:
    def test_mixed_outcomes(self) -> None:
        response = worker.handle({
            "op": "probe",
            "setup": "import math",
            "assertions": [
                _assertion("pi", "math.pi > 3"),
                _assertion("eq", "1 + 1 == 3"),
                _assertion("boom", "1 / 0"),
                _assertion("stmt", "assert False, 'nope'"),
                _assertion("truthy", "[]"),
            ],
        })
        assert response["ok"] is True
        checks = {c["name"]: c for c in response["checks"]}
        assert checks["pi"]["passed"] is True
        assert checks["eq"]["detail"] == "2 == 3 does not hold"
        assert checks["boom"]["detail"].startswith("raised ZeroDivisionError")
        assert checks["stmt"]["detail"] == "AssertionError: nope"
        assert checks["truthy"]["detail"] == "evaluated to []"

    def test_patch_is_undone(self) -> None:
        response = worker.handle({
            "op": "probe",
            "setup": "import math",
            "patches": [{"target": "math.pi", "expr": "3"}],
            "assertions": [_assertion("patched", "math.pi == 3")],
        })
        assert response["checks"][0]["passed"] is True
        assert math.pi != 3

    def test_setup_error_is_phase_error(self) -> None:
        response = worker.handle({
            "op": "probe",
            "setup": "raise KeyError('missing')",
            "assertions": [_assertion("never", "True")],
        })
        assert response["ok"] is False
        assert response["error"]["phase"] == "setup"
        assert response["error"]["type"] == "KeyError"

    def test_fixtures_need_a_module(self) -> None:
        response = worker.handle({"op": "probe", "fixtures": ["db"], "assertions": [_assertion("x", "True")]})
        assert response["error"]["phase"] == "fixtures"
        assert response["error"]["type"] == "LookupError"

    def test_assertion_syntax_error(self) -> None:
        response = worker.handle({"op": "probe", "assertions": [_assertion("bad", "x ===")]})
        assert response["error"]["phase"] == "compile"


@dataclasses.dataclass
class _Point:
    x: int
    y: int


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ((1, 2), [1, 2]),
        ({3, 1}, [1, 3]),
        (_Point(1, 2), {"x": 1, "y": 2}),
        (float("nan"), "nan"),
        ({1: "a"}, {"1": "a"}),
    ],
)
def test_to_jsonable(value: object, expected: object) -> None:
    assert worker.to_jsonable(value) == expected


def test_cap() -> None:
    assert worker.cap("abcdef", 3) == "abc... [truncated 3 chars]"
    assert worker.cap("abc", 3) == "abc"
