"""
kicad-blocks: compose KiCad boards from pre-validated circuit blocks.

Blocks are reusable circuit modules with their own schematic and a
definition describing footprint, power, bus usage and edge connections.
This package places blocks on a 12.7mm grid, checks that they can share a
board, and merges their schematics into one design with unified nets and
short interconnect wires between adjacent blocks.

Modules:
    core: S-expression parsing, building and file I/O
    schema: Schematic document model and geometry transforms
    blocks: Block definitions, registries and summaries
    compose: Placement, compatibility, nets, interconnect and merge
    config: TOML configuration
    cli: ``kicad-blocks`` command line

Quick Start::

    from kicad_blocks import LocalBlockRegistry, auto_place_blocks, merge_block_schematics

    registry = LocalBlockRegistry("blocks/")
    blocks = registry.get_definitions(["mcu-esp32c6", "sensor-bme280"])

    report = check_compatibility(blocks)
    placement = auto_place_blocks(blocks)
    result = merge_block_schematics(placement.placed, blocks, "weather-station", registry)
    result.schematic.save("weather-station.kicad_sch")
"""

__version__ = "0.1.0"

# Core S-expression handling
from kicad_blocks.core.sexp import SExp, parse_sexp, serialize_sexp
from kicad_blocks.core.sexp_file import load_schematic, save_schematic

# Schema models
from kicad_blocks.schema.schematic import Schematic

# Blocks
from kicad_blocks.blocks import (
    BlockDefinition,
    BlockRegistry,
    HttpBlockRegistry,
    InMemoryBlockRegistry,
    LocalBlockRegistry,
    PlacedBlock,
    format_block_summary,
)

# Composition
from kicad_blocks.compose import (
    CompatibilityReport,
    MergeResult,
    MergeStatus,
    auto_place_blocks,
    check_compatibility,
    compose_board,
    generate_interconnect_wires,
    merge_block_schematics,
)

from kicad_blocks.config import Config
from kicad_blocks.exceptions import KiCadBlocksError

__all__ = [
    # Version
    "__version__",
    # Core
    "SExp",
    "parse_sexp",
    "serialize_sexp",
    "load_schematic",
    "save_schematic",
    # Schema
    "Schematic",
    # Blocks
    "BlockDefinition",
    "PlacedBlock",
    "BlockRegistry",
    "LocalBlockRegistry",
    "HttpBlockRegistry",
    "InMemoryBlockRegistry",
    "format_block_summary",
    # Composition
    "auto_place_blocks",
    "check_compatibility",
    "CompatibilityReport",
    "merge_block_schematics",
    "MergeResult",
    "MergeStatus",
    "generate_interconnect_wires",
    "compose_board",
    # Config and errors
    "Config",
    "KiCadBlocksError",
]
