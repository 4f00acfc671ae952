"""
Interconnect generator.

Synthesises short wires that join the bus edges of grid-adjacent blocks.
Each block is checked against two neighbours only:

- east: the block covering cell (grid_x + width, grid_y), matched against
  that block's ``west`` edge entries
- south: the block covering cell (grid_x, grid_y + height), matched against
  that block's ``north`` edge entries

The neighbour's own west/north check never looks back, so each adjacency
yields at most one wire per matching net. Nets must match exactly.

Wire endpoints sit ``EDGE_OVERLAP_MM`` inside each block boundary:

    east:  (x0 + w*12.7 - 1.0, y0 + east.offset) -> (x1 + 1.0, y1 + west.offset)
    south: (x0 + south.offset, y0 + h*12.7 - 1.0) -> (x1 + north.offset, y1 + 1.0)

A facing-edge net declared on only one side produces no wire; it is reported
as an :class:`EdgeMismatch` so one-sided declarations do not go unnoticed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..blocks.definition import GRID_UNIT_MM, BlockDefinition, EdgeConnection, PlacedBlock
from ..core.builders import wire_node
from ..core.sexp import SExp
from ..schema.transform import derive_uuid
from .grid import EDGE_OVERLAP_MM, Cell, build_occupancy, grid_to_mm

logger = logging.getLogger(__name__)

# direction checked on this block -> facing direction on the neighbour
FACING = {"east": "west", "south": "north"}


@dataclass
class LoadedBlock:
    """A placed block together with its definition and millimetre offset."""

    placed: PlacedBlock
    definition: BlockDefinition
    index: int = 0

    @property
    def slug(self) -> str:
        return self.placed.slug

    @property
    def offset(self) -> Tuple[float, float]:
        return grid_to_mm(self.placed.grid_x, self.placed.grid_y)


@dataclass(frozen=True)
class InterconnectWire:
    """A synthesised two-point wire between two blocks."""

    net: str
    direction: str
    from_block: str
    to_block: str
    start: Tuple[float, float]
    end: Tuple[float, float]
    uuid: str

    def to_sexp(self) -> SExp:
        return wire_node(self.start[0], self.start[1], self.end[0], self.end[1], self.uuid)

    def to_dict(self) -> dict:
        return {
            "net": self.net,
            "direction": self.direction,
            "from": self.from_block,
            "to": self.to_block,
            "start": list(self.start),
            "end": list(self.end),
        }


@dataclass(frozen=True)
class EdgeMismatch:
    """A net on a facing edge with no counterpart on the neighbour."""

    block: str
    direction: str
    net: str
    neighbor: str

    def __str__(self) -> str:
        return (
            f"{self.block} declares {self.net} on its {self.direction} edge "
            f"but {self.neighbor} has no matching {_opposite(self.direction)} entry"
        )


@dataclass
class InterconnectResult:
    """Wires and diagnostics produced for one composition."""

    wires: List[InterconnectWire] = field(default_factory=list)
    mismatches: List[EdgeMismatch] = field(default_factory=list)

    def to_sexp(self) -> List[SExp]:
        return [w.to_sexp() for w in self.wires]

    def to_dict(self) -> dict:
        return {
            "wires": [w.to_dict() for w in self.wires],
            "mismatches": [str(m) for m in self.mismatches],
        }


def _opposite(direction: str) -> str:
    return {"east": "west", "west": "east", "north": "south", "south": "north"}[direction]


def build_block_occupancy(loaded: Sequence[LoadedBlock]) -> Dict[Cell, LoadedBlock]:
    """Map every cell a block covers to that block."""
    definitions = {block.slug: block.definition for block in loaded}
    owners = build_occupancy([block.placed for block in loaded], definitions)
    return {cell: loaded[position] for cell, position in owners.items()}


def generate_interconnect_wires(
    loaded: Sequence[LoadedBlock],
    project: str = "",
) -> InterconnectResult:
    """
    Connect matching nets across east/south adjacencies.

    Args:
        loaded: Blocks whose schematics made it into the merge
        project: Project name, mixed into wire UUIDs so they are stable per project

    Returns:
        InterconnectResult with wires in block order (east before south)
    """
    result = InterconnectResult()
    occupancy = build_block_occupancy(loaded)

    for block in loaded:
        width = block.definition.width
        height = block.definition.height
        neighbours = {
            "east": occupancy.get((block.placed.grid_x + width, block.placed.grid_y)),
            "south": occupancy.get((block.placed.grid_x, block.placed.grid_y + height)),
        }
        for direction, neighbour in neighbours.items():
            if neighbour is None or neighbour is block:
                continue
            _connect(block, neighbour, direction, project, result)

    for mismatch in result.mismatches:
        logger.warning(f"Edge mismatch: {mismatch}")
    logger.debug(f"Generated {len(result.wires)} interconnect wire(s)")
    return result


def _connect(
    block: LoadedBlock,
    neighbour: LoadedBlock,
    direction: str,
    project: str,
    result: InterconnectResult,
) -> None:
    facing = FACING[direction]
    ours = block.definition.edges.side(direction)
    theirs = neighbour.definition.edges.side(facing)

    for conn in ours:
        match = _find(theirs, conn.net)
        if match is None:
            result.mismatches.append(EdgeMismatch(block.slug, direction, conn.net, neighbour.slug))
            continue
        start, end = _endpoints(block, neighbour, direction, conn, match)
        result.wires.append(
            InterconnectWire(
                net=conn.net,
                direction=direction,
                from_block=block.slug,
                to_block=neighbour.slug,
                start=start,
                end=end,
                uuid=derive_uuid(
                    project,
                    f"{block.index}:{block.slug}",
                    f"{neighbour.index}:{neighbour.slug}",
                    direction,
                    conn.net,
                ),
            )
        )

    ours_nets = {c.net for c in ours}
    for conn in theirs:
        if conn.net not in ours_nets:
            result.mismatches.append(EdgeMismatch(neighbour.slug, facing, conn.net, block.slug))


def _find(connections: Sequence[EdgeConnection], net: str) -> Optional[EdgeConnection]:
    for conn in connections:
        if conn.net == net:
            return conn
    return None


def _endpoints(
    block: LoadedBlock,
    neighbour: LoadedBlock,
    direction: str,
    conn: EdgeConnection,
    match: EdgeConnection,
) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    x0, y0 = block.offset
    x1, y1 = neighbour.offset
    if direction == "east":
        start = (x0 + block.definition.width * GRID_UNIT_MM - EDGE_OVERLAP_MM, y0 + conn.offset_mm)
        end = (x1 + EDGE_OVERLAP_MM, y1 + match.offset_mm)
    else:
        start = (x0 + conn.offset_mm, y0 + block.definition.height * GRID_UNIT_MM - EDGE_OVERLAP_MM)
        end = (x1 + match.offset_mm, y1 + EDGE_OVERLAP_MM)
    return (round(start[0], 4), round(start[1], 4)), (round(end[0], 4), round(end[1], 4))


__all__ = [
    "LoadedBlock",
    "InterconnectWire",
    "EdgeMismatch",
    "InterconnectResult",
    "build_block_occupancy",
    "generate_interconnect_wires",
]
