"""
Grid geometry shared by the planner, merge engine and interconnect generator.

Blocks sit on a square grid of 12.7mm cells. Cell (x, y) has its top-left
corner at (x * 12.7, y * 12.7) millimetres in schematic coordinates; y grows
downwards as it does in KiCad.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ..blocks.definition import GRID_UNIT_MM, BlockDefinition, PlacedBlock

# Interconnect stubs start/end this far inside each block's boundary
EDGE_OVERLAP_MM = 1.0

Cell = Tuple[int, int]


@dataclass(frozen=True)
class BoardSize:
    """Bounding size of a composed board in millimetres."""

    width: float = 0.0
    height: float = 0.0

    def to_dict(self) -> dict:
        return {"width": round(self.width, 4), "height": round(self.height, 4)}

    def __str__(self) -> str:
        return f"{self.width:g} x {self.height:g} mm"


def grid_to_mm(grid_x: int, grid_y: int) -> Tuple[float, float]:
    """Top-left corner of a grid cell in millimetres."""
    return (grid_x * GRID_UNIT_MM, grid_y * GRID_UNIT_MM)


def build_occupancy(
    placed: Iterable[PlacedBlock],
    definitions: Mapping[str, BlockDefinition],
) -> Dict[Cell, int]:
    """
    Map every covered grid cell to the index of the placement covering it.

    Placements whose slug has no definition cover nothing. When two
    placements claim one cell the later one wins; use
    :func:`~kicad_blocks.compose.placement.validate_placement` to detect that.
    """
    occupancy: Dict[Cell, int] = {}
    for index, block in enumerate(placed):
        definition = definitions.get(block.slug)
        if definition is None:
            continue
        for cell in block.cells(definition):
            occupancy[cell] = index
    return occupancy


def board_size(
    placed: Iterable[PlacedBlock],
    definitions: Mapping[str, BlockDefinition],
) -> BoardSize:
    """Max over placed blocks of (grid_x + width) and (grid_y + height), in mm."""
    max_x = 0
    max_y = 0
    for block in placed:
        definition: Optional[BlockDefinition] = definitions.get(block.slug)
        if definition is None:
            continue
        max_x = max(max_x, block.grid_x + definition.width)
        max_y = max(max_y, block.grid_y + definition.height)
    return BoardSize(width=round(max_x * GRID_UNIT_MM, 4), height=round(max_y * GRID_UNIT_MM, 4))


__all__ = [
    "GRID_UNIT_MM",
    "EDGE_OVERLAP_MM",
    "BoardSize",
    "Cell",
    "grid_to_mm",
    "build_occupancy",
    "board_size",
]
