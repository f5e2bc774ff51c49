#!/usr/bin/env python3
"""eyeball MCP Server.

Exposes every eyeball operation to AI agents over MCP (stdio). Each tool
returns the same result object the CLI prints.

Introspection (static, never imports the target):
- discover: classes, functions, constants of a module (runtime=True imports it in the sandbox)
- source: source text of a module or symbol
- search: keyword-ranked members of a module or package

Introspection (sandbox):
- inspect, doc

Execution (sandbox, hard timeout):
- call, exec, probe, reload

Analysis (static):
- deps, callers, imports

Project:
- test: pytest with one check per test case
- config: effective configuration

Usage:
    eyeball-mcp            # cwd is the workspace root
"""

import logging
import sys
from pathlib import Path
from typing import Annotated, Any

from mcp.server.fastmcp import FastMCP

from eyeball.helpers.dto.execution_dto import CallRequest, ExecRequest, PatchSpec, ProbeAssertion, ProbeRequest
from eyeball.helpers.dto.result_dto import EyeballResult
from eyeball.helpers.dto.testing_dto import TestRunRequest
from eyeball.helpers.logging_helper import NOISY_LOGGERS, suppress_logs
from eyeball.services.eyeball_svc import EyeballService

# ──────────────────────────────────────────────────────────────────────
# Early Setup: Configure logging to stderr (NEVER stdout for MCP stdio)
# ──────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.WARNING,
    format="%(name)s: %(message)s",
    stream=sys.stderr,
)
for noisy_logger in NOISY_LOGGERS:
    logging.getLogger(noisy_logger).setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

# Workspace root - the MCP client starts the server in the workspace folder
ROOT = Path.cwd()

mcp = FastMCP(
    name="eyeball",
    instructions=(
        "Explore and verify the Python project in the current workspace. "
        "Start with discover/search/source (static, safe on broken code), then inspect/doc. "
        "Use call/exec/probe to run code in a sandboxed child interpreter with a timeout. "
        "Every tool returns {status: ok|fail|error, data, checks, error}."
    ),
)

_service: EyeballService | None = None


def _svc() -> EyeballService:
    global _service
    if _service is None:
        _service = EyeballService(root=ROOT)
    return _service


def _dump(result: EyeballResult) -> dict[str, Any]:
    return result.model_dump(exclude_none=True)


def _invalid(command: str, error: ValueError) -> dict[str, Any]:
    return _dump(EyeballResult.failure(command, "UsageError", str(error)))


# ──────────────────────────────────────────────────────────────────────
# Introspection
# ──────────────────────────────────────────────────────────────────────


@mcp.tool()
def discover(
    module: Annotated[str, "Dotted module name, e.g. 'mypkg.shapes'"],
    runtime: Annotated[bool, "Import in the sandbox instead of parsing (sees dynamic members)"] = False,
    include_private: Annotated[bool, "Include _private members"] = False,
) -> dict:
    """List the classes, functions, constants and submodules of a module."""
    with suppress_logs():
        return _dump(_svc().discover(module, runtime=runtime, include_private=include_private or None))


@mcp.tool()
def inspect(target: Annotated[str, "Dotted path: module, class, function, method or attribute"]) -> dict:
    """Kind, signature, location, MRO and members of a named entity (sandbox)."""
    with suppress_logs():
        return _dump(_svc().inspect(target))


@mcp.tool()
def source(
    target: Annotated[str, "Dotted path: 'module', 'module.function' or 'module.Class.method'"],
    context: Annotated[int, "Extra lines before/after the definition"] = 0,
) -> dict:
    """Exact source text of a definition (static, with sandbox fallback)."""
    with suppress_logs():
        return _dump(_svc().source(target, context=context))


@mcp.tool()
def doc(target: Annotated[str, "Dotted path of the documented entity"]) -> dict:
    """Docstring, signature and parsed Args/Returns/Raises sections (sandbox)."""
    with suppress_logs():
        return _dump(_svc().doc(target))


@mcp.tool()
def search(
    module: Annotated[str, "Module or package to search"],
    keywords: Annotated[list[str], "Keywords matched against names and docstrings"],
    limit: Annotated[int, "Maximum hits"] = 20,
) -> dict:
    """Rank members by keyword: exact name 3, name substring 2, docstring 1."""
    with suppress_logs():
        return _dump(_svc().search(module, keywords, limit=limit))


# ──────────────────────────────────────────────────────────────────────
# Execution
# ──────────────────────────────────────────────────────────────────────


@mcp.tool()
def call(
    target: Annotated[str, "Dotted path of a function, method or class"],
    args: Annotated[list[Any] | None, "Positional arguments (JSON values)"] = None,
    kwargs: Annotated[dict[str, Any] | None, "Keyword arguments (JSON values)"] = None,
    timeout: Annotated[float | None, "Seconds before the sandbox is killed"] = None,
) -> dict:
    """Call a function or construct a class in the sandbox and return the value."""
    try:
        request = CallRequest(target=target, args=args or [], kwargs=kwargs or {}, timeout=timeout)
    except ValueError as e:
        return _invalid("call", e)
    with suppress_logs():
        return _dump(_svc().call(request))


@mcp.tool()
def exec(
    code: Annotated[str, "Python code; the value of a trailing expression is returned"],
    module: Annotated[str | None, "Run inside a copy of this module's namespace"] = None,
    timeout: Annotated[float | None, "Seconds before the sandbox is killed"] = None,
) -> dict:
    """Run arbitrary code in the sandbox."""
    try:
        request = ExecRequest(code=code, module=module, timeout=timeout)
    except ValueError as e:
        return _invalid("exec", e)
    with suppress_logs():
        return _dump(_svc().exec(request))


@mcp.tool()
def probe(
    assertions: Annotated[list[str], "'label::expression' or bare expressions/statements"],
    module: Annotated[str | None, "Evaluate in this module's namespace"] = None,
    setup: Annotated[str | None, "Code run before the assertions"] = None,
    fixtures: Annotated[list[str] | None, "Fixture names from the configured fixtures module"] = None,
    patches: Annotated[list[str] | None, "'module.attr=expression' replacements"] = None,
    timeout: Annotated[float | None, "Seconds before the sandbox is killed"] = None,
) -> dict:
    """Verify behaviour: status ok when every assertion holds, fail otherwise."""
    try:
        request = ProbeRequest(
            module=module,
            setup=setup,
            assertions=[ProbeAssertion.parse(a) for a in assertions],
            fixtures=fixtures or [],
            patches=[PatchSpec.parse(p) for p in patches or []],
            timeout=timeout,
        )
    except ValueError as e:
        return _invalid("probe", e)
    with suppress_logs():
        return _dump(_svc().probe(request))


@mcp.tool()
def reload(module: Annotated[str, "Module to re-import"]) -> dict:
    """Re-import a module and report members added, removed or changed since the last reload."""
    with suppress_logs():
        return _dump(_svc().reload(module))


# ──────────────────────────────────────────────────────────────────────
# Analysis
# ──────────────────────────────────────────────────────────────────────


@mcp.tool()
def deps(
    target: Annotated[str, "Function, method, class or module"],
    depth: Annotated[int, "Levels to follow (1-8)"] = 3,
) -> dict:
    """Tree of project-internal calls made by a target (imports, for modules)."""
    with suppress_logs():
        return _dump(_svc().deps(target, depth=depth))


@mcp.tool()
def callers(
    target: Annotated[str, "Function, method or class"],
    depth: Annotated[int, "Levels of callers-of-callers (1-8)"] = 1,
) -> dict:
    """Functions in the package whose calls resolve to the target, with call sites."""
    with suppress_logs():
        return _dump(_svc().callers(target, depth=depth))


@mcp.tool()
def imports(module: Annotated[str, "Module to analyse"]) -> dict:
    """Classified imports (stdlib/third_party/internal), importers and direct cycles."""
    with suppress_logs():
        return _dump(_svc().imports(module))


# ──────────────────────────────────────────────────────────────────────
# Project
# ──────────────────────────────────────────────────────────────────────


@mcp.tool()
def test(
    selectors: Annotated[list[str] | None, "Paths or node ids (default: tests_dir)"] = None,
    keyword: Annotated[str | None, "pytest -k expression"] = None,
    markers: Annotated[str | None, "pytest -m expression"] = None,
    coverage: Annotated[bool, "Collect coverage with pytest-cov"] = False,
) -> dict:
    """Run pytest; one check per test case."""
    request = TestRunRequest(selectors=selectors or [], keyword=keyword, markers=markers, coverage=coverage)
    with suppress_logs():
        return _dump(_svc().test(request))


@mcp.tool()
def config() -> dict:
    """Effective configuration and the sources it was composed from."""
    with suppress_logs():
        return _dump(_svc().config())


def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    mcp.run()
