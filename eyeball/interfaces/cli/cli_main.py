#!/usr/bin/env python3
"""
Main CLI entry point with argument parser and command dispatch.
"""

from __future__ import annotations

import argparse
import logging

from pydantic import ValidationError

from eyeball.__version__ import __version__
from eyeball.helpers.dto.result_dto import ExitCode, EyeballResult
from eyeball.helpers.logging_helper import configure_logging
from eyeball.interfaces.cli.commands.analysis_cli import cmd_callers, cmd_deps, cmd_imports
from eyeball.interfaces.cli.commands.execution_cli import cmd_call, cmd_exec, cmd_probe, cmd_reload
from eyeball.interfaces.cli.commands.introspection_cli import cmd_discover, cmd_doc, cmd_inspect, cmd_search, cmd_source
from eyeball.interfaces.cli.commands.project_cli import cmd_config, cmd_test
from eyeball.interfaces.cli.ui import emit
from eyeball.services.eyeball_svc import EyeballService

logger = logging.getLogger(__name__)


class UsageError(Exception):
    """Raised instead of argparse's print-usage-and-exit."""


class EyeballArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose errors become result objects (exit 2) instead of bare usage text."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{self.prog}: {message}")


def _timeout_arg(s: argparse.ArgumentParser) -> None:
    s.add_argument("--timeout", type=float, default=None, help="time budget in seconds (default: config timeout)")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    p = EyeballArgumentParser(
        prog="eyeball",
        description="eyeball - explore, run and verify Python code from the command line",
        epilog="Examples:\n"
        "  eyeball discover mypkg.shapes                    # Static API of a module\n"
        "  eyeball call mypkg.shapes.area 2 3               # Call with literal arguments\n"
        "  eyeball probe --module mypkg.shapes 'pos::area(2, 3) > 0'\n"
        "  eyeball callers mypkg.shapes.area --depth 2      # Who calls it\n"
        "  eyeball --pretty test -k shapes                  # Run tests, human-readable",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"eyeball {__version__}")
    p.add_argument("--pretty", action="store_true", help="indented, highlighted output with a checks table")
    p.add_argument("-v", "--verbose", action="count", default=0, help="log to stderr (-v info, -vv debug)")
    p.add_argument("--root", default=None, help="workspace root (default: nearest pyproject.toml or .git)")
    p.add_argument("--config", default=None, help="extra YAML config file")
    p.add_argument("--package", default=None, help="package to analyse (overrides config)")
    p.add_argument("--python", default=None, help="interpreter for sandbox and tests (overrides config)")
    p.add_argument("--fixtures-module", default=None, help="module providing probe fixtures (overrides config)")

    sub = p.add_subparsers(
        dest="cmd",
        title="commands",
        description="Available commands (use 'eyeball <command> --help' for command-specific help)",
    )

    # discover: module contents
    s = sub.add_parser("discover", help="list classes, functions and constants of a module")
    s.add_argument("module")
    s.add_argument("--runtime", action="store_true", help="import the module in the sandbox instead of parsing it")
    s.add_argument("--private", action="store_true", help="include _private members")
    s.add_argument("--no-docs", action="store_true", help="summaries instead of full docstrings")
    s.set_defaults(func=cmd_discover)

    # inspect: details of one entity
    s = sub.add_parser("inspect", help="kind, signature, location and members of a named entity")
    s.add_argument("target")
    s.set_defaults(func=cmd_inspect)

    # source: source text
    s = sub.add_parser("source", help="source text of a module, class, function or method")
    s.add_argument("target")
    s.add_argument("--context", type=int, default=0, help="extra lines before and after")
    s.set_defaults(func=cmd_source)

    # doc: documentation
    s = sub.add_parser("doc", help="docstring with parsed sections")
    s.add_argument("target")
    s.set_defaults(func=cmd_doc)

    # search: keyword search
    s = sub.add_parser("search", help="rank a module's members by keyword")
    s.add_argument("module")
    s.add_argument("keywords", nargs="+")
    s.add_argument("--limit", type=int, default=20)
    s.add_argument("--private", action="store_true", help="include _private members")
    s.set_defaults(func=cmd_search)

    # call: invoke a callable
    s = sub.add_parser("call", help="call a function or construct a class in the sandbox")
    s.add_argument("target")
    s.add_argument("args", nargs="*", help="positional arguments (Python literals)")
    s.add_argument("-k", "--kwarg", action="append", default=[], metavar="NAME=VALUE", help="keyword argument")
    _timeout_arg(s)
    s.set_defaults(func=cmd_call)

    # exec: run code
    s = sub.add_parser("exec", help="run code in the sandbox; the last expression is returned")
    s.add_argument("code", nargs="?", help="code to run, or '-' to read stdin")
    s.add_argument("--file", default=None, help="read code from a file")
    s.add_argument("--module", default=None, help="run inside a copy of this module's namespace")
    _timeout_arg(s)
    s.set_defaults(func=cmd_exec)

    # probe: assertions with fixtures and patches
    s = sub.add_parser("probe", help="evaluate named assertions after optional setup")
    s.add_argument("assertions", nargs="*", help="'label::expression' or a bare expression")
    s.add_argument("-a", "--assert", dest="assert_", action="append", default=[], metavar="ASSERTION")
    s.add_argument("--module", default=None, help="evaluate in this module's namespace")
    s.add_argument("--setup", default=None, help="code to run before the assertions")
    s.add_argument("--fixture", action="append", default=[], metavar="NAME", help="fixture to inject")
    s.add_argument("--patch", action="append", default=[], metavar="TARGET=EXPR", help="patch an attribute")
    _timeout_arg(s)
    s.set_defaults(func=cmd_probe)

    # deps / callers / imports: static analysis
    s = sub.add_parser("deps", help="project-internal calls (or imports) made by a target")
    s.add_argument("target")
    s.add_argument("--depth", type=int, default=3)
    s.set_defaults(func=cmd_deps)

    s = sub.add_parser("callers", help="functions in the package that call a target")
    s.add_argument("target")
    s.add_argument("--depth", type=int, default=1)
    s.set_defaults(func=cmd_callers)

    s = sub.add_parser("imports", help="classified imports, importers and cycles of a module")
    s.add_argument("module")
    s.set_defaults(func=cmd_imports)

    # test: pytest with structured results
    s = sub.add_parser("test", help="run pytest and report one check per test")
    s.add_argument("selectors", nargs="*", help="paths or node ids (default: tests_dir)")
    s.add_argument("-k", dest="keyword", default=None, help="pytest -k expression")
    s.add_argument("-m", dest="markers", default=None, help="pytest -m expression")
    s.add_argument("--cov", action="store_true", help="collect coverage with pytest-cov")
    s.add_argument("-x", "--exitfirst", action="store_true", help="stop at the first failure")
    _timeout_arg(s)
    s.set_defaults(func=cmd_test)

    # reload: re-import and diff
    s = sub.add_parser("reload", help="re-import a module and report API changes since the last reload")
    s.add_argument("module")
    s.set_defaults(func=cmd_reload)

    # config: effective configuration
    s = sub.add_parser("config", help="show the effective configuration and its sources")
    s.set_defaults(func=cmd_config)

    return p


def _usage_result(command: str, message: str) -> EyeballResult:
    return EyeballResult.failure(command, "UsageError", message)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        emit(_usage_result("eyeball", str(e)))
        return ExitCode.ERROR

    # If no command provided, show help
    if args.cmd is None:
        parser.print_help()
        return ExitCode.OK

    configure_logging(args.verbose)
    overrides = {
        "package": args.package,
        "python": args.python,
        "fixtures_module": args.fixtures_module,
    }
    service = EyeballService(root=args.root, config_path=args.config, overrides=overrides)

    try:
        result: EyeballResult = args.func(service, args)
    except (ValueError, OSError) as e:
        # Bad literals, patch specs, request validation, unreadable --file
        message = str(e) if not isinstance(e, ValidationError) else "; ".join(err["msg"] for err in e.errors())
        logger.debug("Rejected %s arguments: %s", args.cmd, message)
        result = _usage_result(args.cmd, message)

    emit(result, pretty=args.pretty)
    return result.exit_code()


if __name__ == "__main__":
    raise SystemExit(main())
