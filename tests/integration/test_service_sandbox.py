"""EyeballService end to end: static operations and sandboxed execution on the sample project."""

from pathlib import Path

import pytest

from eyeball.helpers.dto.execution_dto import CallRequest, ExecRequest, PatchSpec, ProbeAssertion, ProbeRequest
from eyeball.services.eyeball_svc import EyeballService

pytestmark = pytest.mark.integration


def _probe(*assertions: str, **fields) -> ProbeRequest:
    return ProbeRequest(assertions=[ProbeAssertion.parse(a) for a in assertions], **fields)


class TestStatic:
    def test_discover(self, service: EyeballService) -> None:
        result = service.discover("samplepkg.shapes")
        assert result.status == "ok"
        assert "Circle" in result.data["classes"]
        assert result.duration_ms is not None

    def test_discover_broken_module_statically(self, service: EyeballService) -> None:
        result = service.discover("samplepkg.broken")
        assert result.status == "ok"
        assert "still_here" in result.data["functions"]

    def test_missing_module_is_error(self, service: EyeballService) -> None:
        result = service.discover("samplepkg.nowhere")
        assert result.status == "error"
        assert result.error.type == "ModuleNotFound"
        assert result.exit_code() == 2

    def test_syntax_error_location(self, service: EyeballService, sample_project: Path) -> None:
        (sample_project / "samplepkg" / "typo.py").write_text("x = 1\ndef oops(:\n")
        result = service.discover("samplepkg.typo")
        assert result.error.type == "SyntaxError"
        assert result.error.location.line == 2

    def test_deps_callers_imports(self, service: EyeballService) -> None:
        assert service.deps("samplepkg.report.squares").data["call_count"] >= 1
        callers = service.callers("samplepkg.shapes.area").data["callers"]
        assert {c["caller"] for c in callers} == {"samplepkg.shapes.square_area", "samplepkg.report.rectangle"}
        assert service.imports("samplepkg.cycle_a").data["cycles"]

    def test_analysis_of_unknown_package(self, service: EyeballService) -> None:
        result = service.callers("nonexistent_pkg.thing")
        assert result.status == "error"
        assert result.error.type == "AnalysisError"

    def test_config(self, service: EyeballService) -> None:
        result = service.config()
        assert result.data["config"]["package"] == "samplepkg"
        assert "command line" in result.data["sources"]


class TestIntrospectionSandbox:
    def test_inspect_class(self, service: EyeballService) -> None:
        result = service.inspect("samplepkg.shapes.Circle")
        assert result.status == "ok"
        assert result.data["kind"] == "class"
        assert "samplepkg.shapes.Shape" in result.data["mro"]
        members = {m["name"]: m for m in result.data["members"]}
        assert members["diameter"]["kind"] == "property"

    def test_inspect_method_kind(self, service: EyeballService) -> None:
        assert service.inspect("samplepkg.shapes.Circle.area").data["kind"] == "method"

    def test_import_failure_is_error(self, service: EyeballService) -> None:
        result = service.inspect("samplepkg.broken.still_here")
        assert result.status == "error"
        assert result.error.type == "RuntimeError"
        assert result.error.location.file.endswith("broken.py")
        assert result.error.location.line == 9

    def test_doc_sections(self, service: EyeballService) -> None:
        result = service.doc("samplepkg.shapes.area")
        assert result.data["summary"] == "Area of a rectangle."
        assert [a["name"] for a in result.data["sections"]["args"]] == ["width", "height"]
        assert result.data["sections"]["raises"][0]["name"] == "ValueError"

    def test_source_falls_back_to_runtime(self, service: EyeballService) -> None:
        result = service.source("samplepkg.Circle")
        assert result.status == "ok"
        assert result.data["static"] is False
        assert "class Circle(Shape):" in result.data["source"]

    def test_runtime_discover(self, service: EyeballService) -> None:
        result = service.discover("samplepkg.shapes", runtime=True)
        assert "area" in result.data["functions"]
        assert result.data["constants"]["UNIT"] == "'cm'"


class TestExecution:
    def test_call(self, service: EyeballService) -> None:
        result = service.call(CallRequest(target="samplepkg.shapes.area", args=[2], kwargs={"height": 3}))
        assert result.status == "ok"
        assert result.data["value"] == 6

    def test_call_raises(self, service: EyeballService) -> None:
        result = service.call(CallRequest(target="samplepkg.shapes.area", args=[-1]))
        assert result.error.type == "ValueError"
        assert result.error.location.file.endswith("shapes.py")
        assert result.error.location.line == 26
        assert "Traceback" in result.error.traceback

    def test_construct_class(self, service: EyeballService) -> None:
        result = service.call(CallRequest(target="samplepkg.shapes.Circle", kwargs={"radius": 2}))
        assert result.data["constructed"] is True
        assert result.data["attributes"] == {"radius": 2}

    def test_async_function_is_awaited(self, service: EyeballService) -> None:
        assert service.call(CallRequest(target="samplepkg.report.doubled", args=[4])).data["value"] == 8

    def test_output_is_captured(self, service: EyeballService) -> None:
        result = service.call(CallRequest(target="samplepkg.report.noisy"))
        assert result.data["value"] == 42
        assert result.stdout == "hello from noisy\n"

    def test_timeout(self, service: EyeballService) -> None:
        result = service.call(CallRequest(target="samplepkg.slow.sleep_for", args=[30], timeout=1))
        assert result.status == "error"
        assert result.error.type == "Timeout"

    def test_exec_in_module_namespace(self, service: EyeballService) -> None:
        result = service.exec(ExecRequest(code="side = 3\narea(side, PI_ROUNDED)", module="samplepkg.shapes"))
        assert result.data["value"] == pytest.approx(9.42)

    def test_exec_runs_in_workspace_root(self, service: EyeballService, sample_project: Path) -> None:
        result = service.exec(ExecRequest(code="import os\nos.getcwd()"))
        assert Path(result.data["value"]).resolve() == sample_project.resolve()


class TestProbe:
    def test_all_pass(self, service: EyeballService) -> None:
        result = service.probe(_probe("positive::area(2, 3) > 0", "square_area(3) == 9", module="samplepkg.shapes"))
        assert result.status == "ok"
        assert result.summary.passed == 2

    def test_failure_detail(self, service: EyeballService) -> None:
        result = service.probe(_probe("wrong::area(2, 2) == 5", "ok::True", module="samplepkg.shapes"))
        assert result.status == "fail"
        assert result.exit_code() == 1
        failed = [c for c in result.checks if not c.passed]
        assert [c.name for c in failed] == ["wrong"]
        assert failed[0].detail == "4 == 5 does not hold"

    def test_exception_in_assertion_is_failed_check(self, service: EyeballService) -> None:
        result = service.probe(_probe("neg::area(-1) == 0", module="samplepkg.shapes"))
        assert result.status == "fail"
        assert result.checks[0].detail.startswith("raised ValueError")

    def test_fixtures(self, service: EyeballService) -> None:
        result = service.probe(_probe(
            "pair::len(ring) == 2",
            "big::ring[1].radius == 10.0",
            "journal::journal == ['opened']",
            fixtures=["ring", "journal", "unit_circle"],
        ))
        assert result.status == "ok", result.checks

    def test_fixture_error_is_phase_error(self, service: EyeballService) -> None:
        result = service.probe(_probe("never::True", fixtures=["exploding"]))
        assert result.status == "error"
        assert result.error.type == "RuntimeError"
        assert result.error.message.endswith("(during fixtures)")

    def test_unknown_fixture(self, service: EyeballService) -> None:
        result = service.probe(_probe("never::True", fixtures=["nope"]))
        assert result.error.type == "LookupError"

    def test_patch(self, service: EyeballService) -> None:
        result = service.probe(_probe(
            "patched::samplepkg.shapes.UNIT == 'mm'",
            setup="import samplepkg.shapes",
            patches=[PatchSpec.parse("samplepkg.shapes.UNIT='mm'")],
        ))
        assert result.status == "ok"

    def test_patch_visible_in_module_namespace(self, service: EyeballService) -> None:
        result = service.probe(_probe(
            "unit::UNIT == 'mm'",
            module="samplepkg.shapes",
            patches=[PatchSpec.parse("samplepkg.shapes.UNIT='mm'")],
        ))
        assert result.status == "ok", result.checks

    def test_patched_function_in_module_namespace(self, service: EyeballService) -> None:
        result = service.probe(_probe(
            "stubbed::area(2, 3) == 0",
            "callers_see_stub::square_area(5) == 0",
            module="samplepkg.shapes",
            patches=[PatchSpec.parse("samplepkg.shapes.area=lambda w, h=1: 0")],
        ))
        assert result.status == "ok", result.checks

    def test_setup_error(self, service: EyeballService) -> None:
        result = service.probe(_probe("never::True", setup="undefined_name + 1"))
        assert result.error.type == "NameError"
        assert result.error.message.endswith("(during setup)")


class TestReload:
    def test_first_load_then_changes(self, service: EyeballService, sample_project: Path) -> None:
        first = service.reload("samplepkg.shapes")
        assert first.status == "ok"
        assert first.data["first_load"] is True
        assert "area" in first.data["added"]

        shapes = sample_project / "samplepkg" / "shapes.py"
        source = shapes.read_text()
        source = source.replace("def square_area(side: float) -> float:", "def square_area(side: float, scale: float = 1) -> float:")
        shapes.write_text(source + "\n\ndef perimeter(width, height):\n    return 2 * (width + height)\n")

        second = service.reload("samplepkg.shapes")
        assert second.data["first_load"] is False
        assert second.data["added"] == ["perimeter"]
        assert [c["name"] for c in second.data["changed"]] == ["square_area"]
        assert (sample_project / ".eyeball_cache" / "snapshots" / "samplepkg.shapes.json").exists()

    def test_failed_import_keeps_snapshot(self, service: EyeballService, sample_project: Path) -> None:
        service.reload("samplepkg.shapes")
        snapshot = sample_project / ".eyeball_cache" / "snapshots" / "samplepkg.shapes.json"
        before = snapshot.read_text()

        shapes = sample_project / "samplepkg" / "shapes.py"
        shapes.write_text(shapes.read_text() + "\nraise ImportError('half-edited')\n")
        result = service.reload("samplepkg.shapes")
        assert result.status == "error"
        assert result.error.type == "ImportError"
        assert snapshot.read_text() == before
