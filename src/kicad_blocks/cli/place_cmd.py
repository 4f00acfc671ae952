"""
``kicad-blocks place``: auto-place the blocks of a composition.

Caller-supplied placements in the composition file are ignored here; this
command always shows what the planner would do.

Exit codes:
    0  every block placed
    1  some blocks did not fit the scan window
"""

from __future__ import annotations

import argparse

from rich.markup import escape
from rich.table import Table

from kicad_blocks.compose.placement import PlacementResult, auto_place_blocks
from kicad_blocks.config import Config

from .utils import get_console, load_inputs, print_json


def run(args: argparse.Namespace, config: Config) -> int:
    composition, registry = load_inputs(args.composition, config)
    definitions = registry.get_definitions(composition.block_slugs)

    result = auto_place_blocks(
        definitions,
        max_columns=args.columns or config.placement.max_columns,
        max_rows=args.rows or config.placement.max_rows,
    )

    if args.format == "json":
        print_json(result.to_dict())
    else:
        print_placement(result, quiet=args.quiet)

    return 0 if result.complete else 1


def print_placement(result: PlacementResult, quiet: bool = False) -> None:
    console = get_console(quiet=quiet)

    table = Table(title="Placement")
    table.add_column("Block")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    for p in result.placed:
        table.add_row(escape(p.slug), str(p.grid_x), str(p.grid_y))
    console.print(table)

    if result.unplaced:
        console.print(f"[red]Unplaced:[/red] {escape(', '.join(result.unplaced_slugs))}")
