#!/usr/bin/env python3
"""
Rendering of result objects: compact JSON for machines, rich output for people.
"""

from __future__ import annotations

import sys

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from eyeball.helpers.dto.result_dto import EyeballResult

# Color scheme constants
COLOR_SUCCESS = "green"
COLOR_FAILURE = "yellow"
COLOR_ERROR = "red"
COLOR_INFO = "cyan"

STATUS_COLORS = {"ok": COLOR_SUCCESS, "fail": COLOR_FAILURE, "error": COLOR_ERROR}

# Results go to stdout; logging goes to stderr
console = Console()


def checks_table(result: EyeballResult) -> Table:
    table = Table(title="Checks", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Check", style=COLOR_INFO, overflow="fold")
    table.add_column("Detail", overflow="fold")
    for check in result.checks:
        mark = f"[{COLOR_SUCCESS}]✓[/]" if check.passed else f"[{COLOR_ERROR}]✗[/]"
        table.add_row(mark, check.name, check.detail or "")
    return table


def show_pretty(result: EyeballResult, target: Console | None = None) -> None:
    """Indented, highlighted JSON followed by a checks table and an error panel."""
    out = target or console
    out.print_json(result.to_json())
    if result.checks:
        out.print(checks_table(result))
    if result.checks and result.summary is not None:
        color = STATUS_COLORS[result.status]
        out.print(f"[{color}]{result.summary.passed}/{result.summary.total} checks passed[/]")
    if result.error is not None:
        where = f"\n[dim]{result.error.location}[/dim]" if result.error.location else ""
        out.print(Panel(f"{result.error.message}{where}", title=result.error.type, border_style=COLOR_ERROR))


def emit(result: EyeballResult, *, pretty: bool = False) -> None:
    """Print exactly one result object on stdout."""
    if pretty:
        show_pretty(result)
        return
    sys.stdout.write(result.to_json() + "\n")
    sys.stdout.flush()
