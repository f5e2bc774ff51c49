#!/usr/bin/env python3
# ======================================================================
#  Eyeball Service - One entry point per operation
#  - Owns configuration and the workspace root
#  - Dispatches to static components or the sandbox
#  - Converts every outcome (including exceptions) into an EyeballResult
# ======================================================================

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from eyeball.components.analysis.deps_comp import find_callers, trace_dependencies
from eyeball.components.analysis.imports_comp import analyze_imports
from eyeball.components.analysis.module_index_comp import ModuleIndex
from eyeball.components.execution.probe_comp import run_probe
from eyeball.components.execution.reload_comp import reload_module
from eyeball.components.execution.runtime_comp import (
    SandboxContext,
    call_target,
    doc_target,
    exec_code,
    inspect_target,
    runtime_members,
    runtime_source,
)
from eyeball.components.introspection.discover_comp import discover_module
from eyeball.components.introspection.search_comp import search_members
from eyeball.components.introspection.source_comp import get_static_source
from eyeball.components.testing.junit_comp import to_checks
from eyeball.components.testing.pytest_runner_comp import run_pytest
from eyeball.helpers.dto.execution_dto import CallRequest, ExecRequest, ProbeRequest
from eyeball.helpers.dto.result_dto import CheckOutcome, EyeballResult
from eyeball.helpers.dto.testing_dto import TestRunRequest
from eyeball.helpers.exceptions import AnalysisError, EyeballError, ResolutionError, SandboxError
from eyeball.sandbox.launcher import WorkerResponse
from eyeball.services.config_svc import ConfigService

logger = logging.getLogger(__name__)

# Test runs get at least this long regardless of the (probe-sized) sandbox timeout
MIN_TEST_TIMEOUT = 300.0


class EyeballService:
    """
    Facade used by the CLI and the MCP server.

    Every public method returns an EyeballResult; nothing raises. EyeballError
    subclasses become status="error" with their error_type, anything else is
    logged and reported as InternalError.
    """

    def __init__(
        self,
        root: Path | str | None = None,
        config_path: Path | str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        self.config_service = ConfigService(root=root, config_path=config_path, overrides=overrides)
        self.root = self.config_service.root

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run(self, command: str, target: str | None, operation: Callable[[], EyeballResult]) -> EyeballResult:
        start = time.perf_counter()
        try:
            result = operation()
        except EyeballError as e:
            logger.info("%s %s failed: %s", command, target or "", e.message)
            result = EyeballResult.failure(command, e.error_type, e.message, target, file=e.file, line=e.line)
        except Exception as e:
            logger.exception("Unexpected error in %s", command)
            result = EyeballResult.failure(command, "InternalError", f"{type(e).__name__}: {e}", target)
        result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
        return result

    def _roots(self) -> list[Path]:
        return self.config_service.import_roots()

    def _sandbox(self) -> SandboxContext:
        cfg = self.config_service.get_config()
        return SandboxContext(
            python=self.config_service.python_executable(),
            root=self.root,
            paths=self._roots(),
            timeout=cfg.timeout,
            max_chars=cfg.max_output_chars,
            include_private=cfg.include_private,
            fixtures_module=cfg.fixtures_module,
        )

    def _index(self, target: str) -> ModuleIndex:
        package = self.config_service.get_config().package or target.split(".")[0]
        if not (target == package or target.startswith(package + ".")):
            # Targets outside the configured package are analysed within their own top-level package
            package = target.split(".")[0]
        return ModuleIndex(package, self._roots())

    @staticmethod
    def _from_worker(
        command: str,
        target: str | None,
        response: WorkerResponse,
        checks: list[CheckOutcome] | None = None,
    ) -> EyeballResult:
        output = {"stdout": response.stdout or None, "stderr": response.stderr or None}
        if response.ok:
            if checks is not None:
                return EyeballResult.from_checks(command, checks, target, data=response.result, **output)
            return EyeballResult.success(command, target, data=response.result, **output)
        err = response.error
        if err is None:
            msg = "sandbox reported a failure without an error"
            raise SandboxError(msg)
        message = f"{err.message} (during {err.phase})" if err.phase else err.message
        return EyeballResult.failure(
            command,
            err.type,
            message,
            target,
            file=err.file,
            line=err.line,
            traceback=err.traceback,
            checks=checks or [],
            **output,
        )

    def _private(self, include_private: bool | None) -> bool:
        return self.config_service.get_config().include_private if include_private is None else include_private

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def discover(
        self,
        module: str,
        *,
        runtime: bool = False,
        include_private: bool | None = None,
        include_docs: bool = True,
    ) -> EyeballResult:
        def operation() -> EyeballResult:
            if runtime:
                return self._from_worker("discover", module, runtime_members(self._sandbox(), module))
            data = discover_module(module, self._roots(), include_private=self._private(include_private), include_docs=include_docs)
            return EyeballResult.success("discover", module, data)

        return self._run("discover", module, operation)

    def inspect(self, target: str) -> EyeballResult:
        return self._run("inspect", target, lambda: self._from_worker("inspect", target, inspect_target(self._sandbox(), target)))

    def source(self, target: str, *, context: int = 0) -> EyeballResult:
        def operation() -> EyeballResult:
            try:
                static = get_static_source(
                    target, self._roots(), context=context, max_chars=self.config_service.get_config().max_output_chars
                )
                return EyeballResult.success("source", target, static)
            except ResolutionError as e:
                logger.debug("Static lookup failed (%s); falling back to the sandbox", e.message)
            response = runtime_source(self._sandbox(), target)
            if response.ok:
                response.result["static"] = False
            return self._from_worker("source", target, response)

        return self._run("source", target, operation)

    def doc(self, target: str) -> EyeballResult:
        return self._run("doc", target, lambda: self._from_worker("doc", target, doc_target(self._sandbox(), target)))

    def search(self, module: str, keywords: list[str], *, limit: int = 20, include_private: bool | None = None) -> EyeballResult:
        def operation() -> EyeballResult:
            data = search_members(module, keywords, self._roots(), limit=limit, include_private=self._private(include_private))
            return EyeballResult.success("search", module, data)

        return self._run("search", module, operation)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def call(self, request: CallRequest) -> EyeballResult:
        return self._run(
            "call", request.target, lambda: self._from_worker("call", request.target, call_target(self._sandbox(), request))
        )

    def exec(self, request: ExecRequest) -> EyeballResult:
        return self._run(
            "exec", request.module, lambda: self._from_worker("exec", request.module, exec_code(self._sandbox(), request))
        )

    def probe(self, request: ProbeRequest) -> EyeballResult:
        def operation() -> EyeballResult:
            response, checks = run_probe(self._sandbox(), request)
            return self._from_worker("probe", request.module, response, checks)

        return self._run("probe", request.module, operation)

    def reload(self, module: str) -> EyeballResult:
        def operation() -> EyeballResult:
            response = reload_module(self._sandbox(), module, self.config_service.cache_dir())
            return self._from_worker("reload", module, response)

        return self._run("reload", module, operation)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def deps(self, target: str, *, depth: int = 3) -> EyeballResult:
        def operation() -> EyeballResult:
            index = self._index(target)
            data = trace_dependencies(index, target, depth)
            if index.skipped:
                data["skipped"] = index.skipped
            return EyeballResult.success("deps", target, data)

        return self._run("deps", target, operation)

    def callers(self, target: str, *, depth: int = 1) -> EyeballResult:
        def operation() -> EyeballResult:
            index = self._index(target)
            data = find_callers(index, target, depth)
            if index.skipped:
                data["skipped"] = index.skipped
            return EyeballResult.success("callers", target, data)

        return self._run("callers", target, operation)

    def imports(self, module: str) -> EyeballResult:
        def operation() -> EyeballResult:
            try:
                index: ModuleIndex | None = self._index(module)
            except AnalysisError as e:
                logger.info("No package index for %s: %s", module, e.message)
                index = None
            return EyeballResult.success("imports", module, analyze_imports(module, self._roots(), index))

        return self._run("imports", module, operation)

    # ------------------------------------------------------------------
    # Tests and config
    # ------------------------------------------------------------------

    def test(self, request: TestRunRequest) -> EyeballResult:
        def operation() -> EyeballResult:
            cfg = self.config_service.get_config()
            run = run_pytest(
                request,
                python=self.config_service.python_executable(),
                root=self.root,
                paths=self._roots(),
                tests_dir=cfg.tests_dir,
                package=cfg.package,
                timeout=request.timeout or max(cfg.timeout, MIN_TEST_TIMEOUT),
            )
            checks = to_checks(run.cases)
            counts = {o: sum(1 for c in run.cases if c.outcome == o) for o in ("passed", "failed", "error", "skipped")}
            data: dict[str, Any] = {
                "command": run.command,
                "exit_code": run.exit_code,
                "counts": counts,
                "duration_s": round(sum(c.duration_s for c in run.cases), 3),
            }
            if run.coverage is not None:
                data["coverage"] = run.coverage.model_dump()

            if run.problem is not None:
                return EyeballResult.failure(
                    "test", "TestRunError", run.problem, data=data, checks=checks, stderr=run.output_tail or None
                )
            if run.exit_code != 0 and all(c.passed for c in checks):
                # pytest reported failure outside any test case (e.g. a session fixture)
                checks.append(CheckOutcome(name="pytest session", passed=False, detail=run.output_tail[-500:] or None))
            return EyeballResult.from_checks("test", checks, data=data)

        return self._run("test", None, operation)

    def config(self) -> EyeballResult:
        return self._run("config", None, lambda: EyeballResult.success("config", data=self.config_service.get_report().model_dump()))
