"""
Analysis commands: deps, callers, imports.
"""

from __future__ import annotations

import argparse

from eyeball.helpers.dto.result_dto import EyeballResult
from eyeball.services.eyeball_svc import EyeballService


def cmd_deps(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.deps(args.target, depth=args.depth)


def cmd_callers(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.callers(args.target, depth=args.depth)


def cmd_imports(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.imports(args.module)
