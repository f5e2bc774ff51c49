"""Probes: fixtures, patches and setup, then independently evaluated assertions."""

from __future__ import annotations

__all__ = ["run_probe", "worker_checks"]

import logging
from typing import Any

from eyeball.components.execution.runtime_comp import SandboxContext
from eyeball.helpers.dto.execution_dto import ProbeRequest
from eyeball.helpers.dto.result_dto import CheckOutcome
from eyeball.sandbox.launcher import WorkerResponse

logger = logging.getLogger(__name__)


def worker_checks(raw: list[dict[str, Any]]) -> list[CheckOutcome]:
    return [CheckOutcome(name=c["name"], passed=bool(c["passed"]), detail=c.get("detail")) for c in raw]


def run_probe(ctx: SandboxContext, request: ProbeRequest) -> tuple[WorkerResponse, list[CheckOutcome]]:
    """Run a probe in the sandbox; returns the raw response and one check per assertion."""
    logger.debug("probe module=%s assertions=%d fixtures=%s", request.module, len(request.assertions), request.fixtures)
    response = ctx.run(
        "probe",
        timeout=request.timeout,
        module=request.module,
        setup=request.setup,
        assertions=[a.model_dump() for a in request.assertions],
        fixtures=request.fixtures,
        fixtures_module=ctx.fixtures_module,
        patches=[p.model_dump() for p in request.patches],
    )
    return response, worker_checks(response.checks)
