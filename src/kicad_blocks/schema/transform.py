"""
Pure geometry transforms over schematic element trees.

All functions return new trees; the input element is never modified. This
lets the merge engine translate elements parsed from one block without any
risk of aliasing nodes between blocks.
"""

from __future__ import annotations

import uuid as uuid_mod
from ..core.builders import fmt
from ..core.sexp import SExp

# Top-level schematic elements that carry placement geometry
PLACEABLE_TAGS = (
    "symbol",
    "wire",
    "bus",
    "bus_entry",
    "junction",
    "no_connect",
    "label",
    "global_label",
    "hierarchical_label",
    "text",
)

# Namespace for UUIDs derived while merging block schematics
MERGE_UUID_NAMESPACE = uuid_mod.UUID("6f1d3c1e-6a53-4c1f-9f0e-3b2d7f6b9a10")


def translate_element(element: SExp, dx: float, dy: float) -> SExp:
    """
    Return a copy of ``element`` moved by (dx, dy) millimetres.

    Every ``(at X Y ...)`` node and every ``(xy X Y)`` point inside a
    ``(pts ...)`` list is shifted. For symbols this moves the body together
    with its property text, which KiCad stores in absolute coordinates.
    """
    moved = element.copy()
    for node in moved.iter_all():
        if node.tag == "at":
            _shift(node, dx, dy)
        elif node.tag == "pts":
            for point in node.find_all("xy"):
                _shift(point, dx, dy)
    return moved


def _shift(node: SExp, dx: float, dy: float) -> None:
    x = node.get_float(0)
    y = node.get_float(1)
    if x is None or y is None:
        return
    node.values[0] = fmt(x + dx)
    node.values[1] = fmt(y + dy)


def rekey_uuids(element: SExp, seed: str) -> SExp:
    """
    Return a copy of ``element`` with every UUID replaced by a derived one.

    The replacement is ``uuid5(namespace, seed + old)`` so that merging the
    same inputs twice yields identical documents, while two placements of the
    same block (different seeds) never collide.
    """
    rekeyed = element.copy()
    for node in rekeyed.iter_all():
        if node.tag == "uuid" and node.values:
            old = node.get_string(0) or ""
            node.values[0] = derive_uuid(seed, old)
    return rekeyed


def derive_uuid(*parts: str) -> str:
    """Deterministic UUID from an ordered list of strings."""
    return str(uuid_mod.uuid5(MERGE_UUID_NAMESPACE, "/".join(parts)))
