"""Runtime operations executed in the sandbox child interpreter."""

from __future__ import annotations

__all__ = [
    "SandboxContext",
    "call_target",
    "doc_target",
    "exec_code",
    "inspect_target",
    "runtime_members",
    "runtime_source",
]

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from eyeball.helpers.docstring_helper import parse_docstring
from eyeball.helpers.dto.execution_dto import CallRequest, ExecRequest
from eyeball.sandbox.launcher import WorkerResponse, run_in_sandbox


@dataclass(frozen=True)
class SandboxContext:
    """Everything needed to launch a worker for one workspace."""

    python: Path
    root: Path
    paths: list[Path]
    timeout: float
    max_chars: int
    include_private: bool = False
    fixtures_module: str | None = None

    def run(self, op: str, *, timeout: float | None = None, **fields: Any) -> WorkerResponse:
        request = {
            "op": op,
            "max_chars": self.max_chars,
            "include_private": self.include_private,
            **fields,
        }
        return run_in_sandbox(
            request,
            python=self.python,
            cwd=self.root,
            paths=self.paths,
            timeout=timeout or self.timeout,
        )


def inspect_target(ctx: SandboxContext, target: str) -> WorkerResponse:
    return ctx.run("inspect", target=target)


def doc_target(ctx: SandboxContext, target: str) -> WorkerResponse:
    """Docstring plus its parsed summary, description and sections."""
    response = ctx.run("doc", target=target)
    if response.ok and isinstance(response.result, dict):
        parsed = parse_docstring(response.result.get("doc"))
        response.result.update(parsed)
    return response


def runtime_source(ctx: SandboxContext, target: str) -> WorkerResponse:
    return ctx.run("source", target=target)


def runtime_members(ctx: SandboxContext, module: str) -> WorkerResponse:
    return ctx.run("members", target=module)


def call_target(ctx: SandboxContext, request: CallRequest) -> WorkerResponse:
    return ctx.run("call", timeout=request.timeout, target=request.target, args=request.args, kwargs=request.kwargs)


def exec_code(ctx: SandboxContext, request: ExecRequest) -> WorkerResponse:
    return ctx.run("exec", timeout=request.timeout, code=request.code, module=request.module)
