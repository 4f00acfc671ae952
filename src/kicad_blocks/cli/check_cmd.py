"""
``kicad-blocks check``: compatibility report for a composition.

Exit codes:
    0  blocks are compatible (warnings allowed)
    1  at least one error
"""

from __future__ import annotations

import argparse

from rich.markup import escape
from rich.table import Table

from kicad_blocks.compose.compatibility import CompatibilityReport, Severity
from kicad_blocks.compose.composer import check_composition
from kicad_blocks.config import Config

from .utils import get_console, load_inputs, print_json


def run(args: argparse.Namespace, config: Config) -> int:
    composition, registry = load_inputs(args.composition, config)
    definitions, report = check_composition(composition, registry, config)

    if args.format == "json":
        print_json(report.to_dict(detailed=args.detailed))
    else:
        print_report(report, composition.project, len(definitions), quiet=args.quiet)

    return 0 if report.compatible else 1


def print_report(report: CompatibilityReport, project: str, block_count: int, quiet: bool = False) -> None:
    """Render a report as a rich table."""
    console = get_console(quiet=quiet)

    status = "[green]PASSED[/green]" if report.compatible else "[red]FAILED[/red]"
    console.print(f"[bold]{escape(project)}[/bold]: {block_count} block(s), DRC {status}")

    if not report.issues:
        return

    table = Table(show_lines=False)
    table.add_column("Severity")
    table.add_column("Code", style="dim")
    table.add_column("Message")

    for issue in report.issues:
        color = "red" if issue.severity == Severity.ERROR else "yellow"
        table.add_row(
            f"[{color}]{issue.severity.value}[/{color}]",
            issue.code.value,
            escape(issue.message),
        )

    console.print(table)
    console.print(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")
