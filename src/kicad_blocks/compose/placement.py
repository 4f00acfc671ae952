"""
Grid placement planner.

Assigns non-overlapping grid positions to a set of blocks:

1. Sort by descending footprint area (stable, so equal areas keep input order)
2. Move the first controller block to the front; it anchors the origin
3. For each block scan the window row by row, column by column, and take the
   first top-left cell where every covered cell is free

Blocks that find no position inside the window are reported in
:attr:`PlacementResult.unplaced` rather than dropped.

Example::

    >>> result = auto_place_blocks([mcu, sensor])
    >>> result.complete
    True
    >>> [(p.slug, p.grid_x, p.grid_y) for p in result.placed]
    [('mcu-esp32c6', 0, 0), ('sensor-bme280', 2, 0)]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Set

from ..blocks.definition import BlockDefinition, PlacedBlock
from .grid import Cell

logger = logging.getLogger(__name__)

DEFAULT_MAX_COLUMNS = 10
DEFAULT_MAX_ROWS = 10


@dataclass
class PlacementResult:
    """Outcome of auto-placement."""

    placed: List[PlacedBlock] = field(default_factory=list)
    unplaced: List[BlockDefinition] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every block found a position."""
        return not self.unplaced

    @property
    def unplaced_slugs(self) -> List[str]:
        return [b.slug for b in self.unplaced]

    def to_dict(self) -> dict:
        return {
            "complete": self.complete,
            "placed": [
                {"slug": p.slug, "x": p.grid_x, "y": p.grid_y, "rotation": p.rotation}
                for p in self.placed
            ],
            "unplaced": self.unplaced_slugs,
        }


def placement_order(blocks: Sequence[BlockDefinition]) -> List[BlockDefinition]:
    """Largest area first, with the first controller block moved to the front."""
    ordered = sorted(blocks, key=lambda b: b.area, reverse=True)
    for i, block in enumerate(ordered):
        if block.is_controller:
            ordered.insert(0, ordered.pop(i))
            break
    return ordered


def auto_place_blocks(
    blocks: Sequence[BlockDefinition],
    max_columns: int = DEFAULT_MAX_COLUMNS,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> PlacementResult:
    """
    Place blocks on the grid without overlap.

    Args:
        blocks: Block definitions to place, in caller order
        max_columns: Width of the top-left scan window in grid units
        max_rows: Height of the top-left scan window in grid units

    Returns:
        PlacementResult with placements in placement order and any blocks
        that did not fit
    """
    result = PlacementResult()
    occupied: Set[Cell] = set()

    for block in placement_order(blocks):
        position = _first_free_position(block, occupied, max_columns, max_rows)
        if position is None:
            logger.warning(
                f"No free position for block {block.slug} "
                f"({block.width}x{block.height}) within {max_columns}x{max_rows} grid"
            )
            result.unplaced.append(block)
            continue

        x, y = position
        placed = PlacedBlock(slug=block.slug, grid_x=x, grid_y=y, rotation=0)
        occupied.update(placed.cells(block))
        result.placed.append(placed)
        logger.debug(f"Placed {block.slug} at ({x}, {y})")

    return result


def _first_free_position(
    block: BlockDefinition,
    occupied: Set[Cell],
    max_columns: int,
    max_rows: int,
):
    for y in range(max_rows):
        for x in range(max_columns):
            if all(
                (x + dx, y + dy) not in occupied
                for dy in range(block.height)
                for dx in range(block.width)
            ):
                return (x, y)
    return None


def validate_placement(
    placed: Sequence[PlacedBlock],
    definitions: Mapping[str, BlockDefinition],
    max_columns: int | None = None,
    max_rows: int | None = None,
) -> List[str]:
    """
    Check caller-supplied placements (e.g. from a drag-and-drop editor).

    Returns:
        List of problem descriptions; empty when the placement is usable
    """
    problems: List[str] = []
    owners: Dict[Cell, str] = {}

    for block in placed:
        definition = definitions.get(block.slug)
        if definition is None:
            problems.append(f"Unknown block '{block.slug}' at ({block.grid_x}, {block.grid_y})")
            continue

        if max_columns is not None and block.grid_x + definition.width > max_columns:
            problems.append(f"Block '{block.slug}' extends past column {max_columns}")
        if max_rows is not None and block.grid_y + definition.height > max_rows:
            problems.append(f"Block '{block.slug}' extends past row {max_rows}")

        for cell in block.cells(definition):
            owner = owners.get(cell)
            if owner is not None:
                problems.append(
                    f"Blocks '{owner}' and '{block.slug}' overlap at cell {cell[0]},{cell[1]}"
                )
                break
            owners[cell] = block.slug

    return problems


__all__ = [
    "DEFAULT_MAX_COLUMNS",
    "DEFAULT_MAX_ROWS",
    "PlacementResult",
    "auto_place_blocks",
    "placement_order",
    "validate_placement",
]
