"""Launch the sandbox worker in a child interpreter.

Invariants:
- **Hard timeout**: the child is killed after `timeout` seconds (SandboxTimeout).
- **Proxy env stripped**: proxy variables never reach target code.
- **No bytecode writes**: PYTHONDONTWRITEBYTECODE=1 in the child.
- **Bounded output**: protocol output above MAX_PROTOCOL_BYTES is rejected.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from eyeball.helpers.exceptions import SandboxError, SandboxTimeout
from eyeball.sandbox.worker import RESULT_SENTINEL

logger = logging.getLogger(__name__)

WORKER_SCRIPT = Path(__file__).with_name("worker.py")
MAX_PROTOCOL_BYTES = 1_000_000
PROXY_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "REQUESTS_CA_BUNDLE", "http_proxy", "https_proxy", "ALL_PROXY", "all_proxy")


class WorkerError(BaseModel):
    type: str
    message: str
    file: str | None = None
    line: int | None = None
    traceback: str | None = None
    phase: str | None = None


class WorkerResponse(BaseModel):
    """One answer from the worker."""

    ok: bool
    result: Any = None
    checks: list[dict[str, Any]] = Field(default_factory=list)
    stdout: str | None = None
    stderr: str | None = None
    error: WorkerError | None = None


def build_safe_env(paths: list[Path]) -> dict[str, str]:
    """Subprocess environment with proxy vars stripped and import roots on PYTHONPATH."""
    env = os.environ.copy()
    for key in PROXY_VARS:
        env.pop(key, None)
    env["PYTHONDONTWRITEBYTECODE"] = "1"
    env["PYTHONIOENCODING"] = "utf-8"
    existing = env.get("PYTHONPATH")
    entries = [str(p) for p in paths] + ([existing] if existing else [])
    env["PYTHONPATH"] = os.pathsep.join(entries)
    return env


def parse_protocol_output(stdout: str) -> WorkerResponse:
    """Find the sentinel line in the worker's stdout and validate it."""
    for line in reversed(stdout.splitlines()):
        if line.startswith(RESULT_SENTINEL):
            payload = line[len(RESULT_SENTINEL) :]
            try:
                return WorkerResponse.model_validate(json.loads(payload))
            except (json.JSONDecodeError, ValidationError) as e:
                msg = f"Invalid response from sandbox: {e}"
                raise SandboxError(msg) from e
    preview = stdout[:300] if stdout else "(empty)"
    msg = f"Sandbox produced no result line. Output: {preview}"
    raise SandboxError(msg)


def run_in_sandbox(
    request: dict[str, Any],
    *,
    python: Path,
    cwd: Path,
    paths: list[Path],
    timeout: float,
) -> WorkerResponse:
    """Run one worker request and return its response.

    Raises:
        SandboxTimeout: the child exceeded `timeout` seconds
        SandboxError: the child could not start or answered garbage
    """
    payload = {**request, "paths": [str(p) for p in paths]}
    logger.debug("sandbox op=%s target=%s python=%s", payload.get("op"), payload.get("target"), python)

    try:
        proc = subprocess.run(
            [str(python), str(WORKER_SCRIPT)],
            input=json.dumps(payload),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            cwd=str(cwd),
            env=build_safe_env(paths),
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        msg = f"Sandbox timed out after {timeout:g}s"
        raise SandboxTimeout(msg) from e
    except OSError as e:
        msg = f"Failed to launch sandbox interpreter {python}: {e}"
        raise SandboxError(msg) from e

    if len(proc.stdout) > MAX_PROTOCOL_BYTES:
        msg = f"Sandbox output too large ({len(proc.stdout)} bytes), capped at {MAX_PROTOCOL_BYTES}"
        raise SandboxError(msg)

    if proc.returncode != 0 and RESULT_SENTINEL not in proc.stdout:
        stderr_preview = proc.stderr[-500:] if proc.stderr else "(no stderr)"
        msg = f"Sandbox exited with code {proc.returncode}: {stderr_preview}"
        raise SandboxError(msg)

    return parse_protocol_output(proc.stdout)
