"""
``kicad-blocks merge``: run the whole pipeline and write the merged schematic.

Exit codes:
    0  every block merged
    1  blocks incompatible, or the merge failed
    2  partial merge (some blocks skipped)
"""

from __future__ import annotations

import argparse
from pathlib import Path

from rich.markup import escape
from rich.table import Table

from kicad_blocks.compose.composer import CompositionResult, compose_board
from kicad_blocks.compose.merge import MergeStatus
from kicad_blocks.config import Config

from .check_cmd import print_report
from .utils import get_console, load_inputs, print_json

EXIT_CODES = {
    MergeStatus.COMPLETE: 0,
    MergeStatus.FAILED: 1,
    MergeStatus.PARTIAL: 2,
}


def run(args: argparse.Namespace, config: Config) -> int:
    if args.fail_fast:
        config.merge.fail_fast = True

    composition, registry = load_inputs(args.composition, config)
    result = compose_board(composition, registry, config, require_compatible=not args.force)

    merge = result.merge
    if merge is not None and merge.schematic is not None:
        output = Path(args.output) if args.output else Path(f"{composition.project}.kicad_sch")
        merge.schematic.save(output)
    else:
        output = None

    if args.format == "json":
        data = result.to_dict()
        data["output"] = str(output) if output else None
        print_json(data)
    else:
        _print_result(result, output, quiet=args.quiet)

    if merge is None:
        return 1
    return EXIT_CODES[merge.status]


def _print_result(result: CompositionResult, output: Path | None, quiet: bool = False) -> None:
    console = get_console(quiet=quiet)
    merge = result.merge

    if merge is None:
        print_report(result.report, result.project, len(result.definitions), quiet=quiet)
        console.print("[red]Not merged:[/red] fix the errors above or pass --force")
        return

    color = {"complete": "green", "partial": "yellow", "failed": "red"}[merge.status.value]
    console.print(f"[bold]{escape(result.project)}[/bold]: merge [{color}]{merge.status.value}[/{color}]")
    console.print(f"Board size: {merge.board_size}")

    for skipped in merge.skipped:
        console.print(f"[yellow]Skipped:[/yellow] {escape(str(skipped))}")

    if merge.net_list:
        table = Table(title="Net assignments")
        table.add_column("Block")
        table.add_column("Local net")
        table.add_column("Global net")
        for n in merge.net_list:
            table.add_row(escape(n.block_slug), escape(n.local_net), escape(n.global_net))
        console.print(table)

    console.print(f"Interconnect wires: {len(merge.interconnect.wires)}")
    for mismatch in merge.interconnect.mismatches:
        console.print(f"[yellow]Edge mismatch:[/yellow] {escape(str(mismatch))}")

    if output is not None:
        console.print(f"Wrote {output}")
