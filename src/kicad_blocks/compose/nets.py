"""
Global net table and per-block net assignments.

Each block names its bus signals locally (its taps). The net table gives
every distinct name one board-wide id, and a :class:`NetAssignment` records
how each block's local name resolves. Downstream firmware pin mapping reads
the assignments, so one is produced for every tap of every merged block even
when the local and global names are identical.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from ..blocks.definition import BlockDefinition, PlacedBlock

# Ground plus the two standard rails
RESERVED_NETS = ("GND", "V3V3", "VBUS")


class NetTable:
    """Ordered mapping of global net name to a sequential integer id (from 1)."""

    def __init__(self, reserved: Iterable[str] = RESERVED_NETS):
        self._ids: Dict[str, int] = {}
        for name in reserved:
            self.add(name)

    def add(self, name: str) -> int:
        """Register a net if new and return its id."""
        if name not in self._ids:
            self._ids[name] = len(self._ids) + 1
        return self._ids[name]

    def id_of(self, name: str) -> Optional[int]:
        return self._ids.get(name)

    def resolve(self, local_net: str) -> str:
        """
        Global name for a block-local net.

        Tap names are registered verbatim, so a registered name resolves to
        itself.

        Raises:
            KeyError: If the net was never registered
        """
        if local_net not in self._ids:
            raise KeyError(f"Net '{local_net}' is not in the global net table")
        return local_net

    @property
    def names(self) -> List[str]:
        return list(self._ids)

    def to_dict(self) -> Dict[str, int]:
        return dict(self._ids)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"NetTable({len(self._ids)} nets)"


@dataclass(frozen=True)
class NetAssignment:
    """Binding of a block-local net name to its global net."""

    local_net: str
    global_net: str
    block_slug: str
    gpio: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "local_net": self.local_net,
            "global_net": self.global_net,
            "block_slug": self.block_slug,
        }
        if self.gpio is not None:
            data["gpio"] = self.gpio
        return data


def build_global_net_table(
    blocks: Iterable[BlockDefinition],
    reserved: Iterable[str] = RESERVED_NETS,
) -> NetTable:
    """Seed with reserved names, then add tap nets in order of first appearance."""
    table = NetTable(reserved)
    for block in blocks:
        for tap in block.bus.taps:
            table.add(tap.net)
    return table


def assign_nets(block: BlockDefinition, table: NetTable) -> List[NetAssignment]:
    """One assignment per tap of ``block``."""
    return [
        NetAssignment(
            local_net=tap.net,
            global_net=table.resolve(tap.net),
            block_slug=block.slug,
        )
        for tap in block.bus.taps
    ]


def collect_net_assignments(
    placed: Sequence[PlacedBlock],
    definitions: Mapping[str, BlockDefinition],
    table: NetTable,
) -> List[NetAssignment]:
    """Assignments for every placed block with a definition, in placement order."""
    assignments: List[NetAssignment] = []
    for block in placed:
        definition = definitions.get(block.slug)
        if definition is not None:
            assignments.extend(assign_nets(definition, table))
    return assignments


__all__ = [
    "RESERVED_NETS",
    "NetTable",
    "NetAssignment",
    "build_global_net_table",
    "assign_nets",
    "collect_net_assignments",
]
