#!/usr/bin/env python3
"""
Example: Weather Station Composition

Composes a small board from three blocks in the local library under
./blocks: an ESP32-C6 controller, a BME280 sensor and a USB-C power input.
Runs the compatibility check, places the blocks, merges their schematics
and writes the combined sheet.

Usage:
    python compose.py [composition_file] [-o output.kicad_sch]

If no file is specified, uses the included board.yaml.
"""

import argparse
import sys
from pathlib import Path

from kicad_blocks import Config
from kicad_blocks.compose import compose_board, format_report, load_composition, make_registry


def print_placement(result) -> None:
    print("\n=== Placement ===")
    print(f"{'Block':<18} {'X':>3} {'Y':>3}")
    print("-" * 28)
    for placed in result.placed:
        print(f"{placed.slug:<18} {placed.grid_x:>3} {placed.grid_y:>3}")
    if result.placement is not None and result.placement.unplaced_slugs:
        print(f"Unplaced: {', '.join(result.placement.unplaced_slugs)}")


def print_merge(merge) -> None:
    print("\n=== Merge ===")
    print(f"Status: {merge.status.value}")
    print(f"Board size: {merge.board_size}")

    print("\nNets:")
    for assignment in merge.net_list:
        print(f"  {assignment.block_slug:<18} {assignment.local_net}")

    print("\nInterconnect wires:")
    for wire in merge.interconnect.wires:
        print(f"  {wire.net:<10} {wire.from_block} -> {wire.to_block} ({wire.direction})")
    for mismatch in merge.interconnect.mismatches:
        print(f"  warning: {mismatch}")

    for skipped in merge.skipped:
        print(f"  skipped: {skipped}")


def main() -> int:
    here = Path(__file__).parent
    parser = argparse.ArgumentParser(description="Compose the weather station board")
    parser.add_argument("composition", nargs="?", default=str(here / "board.yaml"))
    parser.add_argument("-o", "--output", help="Output schematic path")
    args = parser.parse_args()

    composition_path = Path(args.composition)
    print(f"Loading composition: {composition_path}")
    print("=" * 60)

    composition = load_composition(composition_path)
    registry = make_registry(composition, Config(), base_dir=composition_path.parent)
    result = compose_board(composition, registry)

    print("\n=== Compatibility ===")
    print(format_report(result.report))
    if result.merge is None:
        print("\nBlocks are not compatible; nothing merged.")
        return 1

    print_placement(result)
    print_merge(result.merge)

    if result.merge.schematic is None:
        return 1

    output = Path(args.output) if args.output else here / f"{composition.project}.kicad_sch"
    result.merge.schematic.save(output)
    print(f"\nWrote {output}")
    return 0 if result.merge.complete else 2


if __name__ == "__main__":
    sys.exit(main())
