"""
Introspection commands: discover, inspect, source, doc, search.
"""

from __future__ import annotations

import argparse

from eyeball.helpers.dto.result_dto import EyeballResult
from eyeball.services.eyeball_svc import EyeballService


def _private(args: argparse.Namespace) -> bool | None:
    # None defers to the configured include_private
    return True if args.private else None


def cmd_discover(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.discover(
        args.module,
        runtime=args.runtime,
        include_private=_private(args),
        include_docs=not args.no_docs,
    )


def cmd_inspect(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.inspect(args.target)


def cmd_source(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.source(args.target, context=args.context)


def cmd_doc(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.doc(args.target)


def cmd_search(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.search(args.module, args.keywords, limit=args.limit, include_private=_private(args))
