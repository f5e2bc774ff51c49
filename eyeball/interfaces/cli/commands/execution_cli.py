"""
Execution commands: call, exec, probe, reload.

Values given on the command line are Python literals ("3", "[1, 2]",
"'text'"); anything that is not a literal is passed as a plain string.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from eyeball.helpers.dto.execution_dto import CallRequest, ExecRequest, PatchSpec, ProbeAssertion, ProbeRequest
from eyeball.helpers.dto.result_dto import EyeballResult
from eyeball.helpers.literal_helper import parse_keyword, parse_value
from eyeball.services.eyeball_svc import EyeballService


def _read_code(code: str | None, file: str | None) -> str:
    """Code from --file, from stdin ("-"), or the positional argument."""
    if file:
        return Path(file).read_text(encoding="utf-8")
    if code == "-":
        return sys.stdin.read()
    if not code:
        msg = "exec needs CODE, '-' for stdin, or --file"
        raise ValueError(msg)
    return code


def cmd_call(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    kwargs = dict(parse_keyword(raw) for raw in args.kwarg)
    request = CallRequest(
        target=args.target,
        args=[parse_value(raw) for raw in args.args],
        kwargs=kwargs,
        timeout=args.timeout,
    )
    return service.call(request)


def cmd_exec(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    request = ExecRequest(code=_read_code(args.code, args.file), module=args.module, timeout=args.timeout)
    return service.exec(request)


def cmd_probe(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    raw_assertions = [*args.assertions, *args.assert_]
    request = ProbeRequest(
        module=args.module,
        setup=args.setup,
        assertions=[ProbeAssertion.parse(raw) for raw in raw_assertions],
        fixtures=args.fixture,
        patches=[PatchSpec.parse(raw) for raw in args.patch],
        timeout=args.timeout,
    )
    return service.probe(request)


def cmd_reload(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.reload(args.module)
