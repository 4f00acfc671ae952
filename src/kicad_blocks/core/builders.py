"""
Builders for the schematic S-expressions the composer emits.

Usage::

    from kicad_blocks.core.builders import wire_node, title_block

    wire = wire_node(10, 20, 30, 40, uuid_str)
"""

from __future__ import annotations

from .sexp import SExp, Token


def fmt(val: float) -> int | float:
    """Round a coordinate to 4 decimals, returning an int when integral."""
    rounded = round(val, 4)
    if rounded == int(rounded):
        return int(rounded)
    return rounded


def node(tag: str, *values) -> SExp:
    """Build a node from positional values."""
    return SExp(tag, list(values))


def xy(x: float, y: float) -> SExp:
    """Build an (xy X Y) coordinate node."""
    return node("xy", fmt(x), fmt(y))


def pts(*points: SExp) -> SExp:
    """Build a (pts (xy ...) ...) node."""
    return node("pts", *points)


def at(x: float, y: float, rotation: float = 0) -> SExp:
    """Build an (at X Y ROTATION) node."""
    return node("at", fmt(x), fmt(y), fmt(rotation))


def stroke(width: float = 0, stroke_type: str = "default") -> SExp:
    """Build a (stroke (width W) (type T)) node."""
    return node("stroke", node("width", width), node("type", Token(stroke_type)))


def uuid_node(uuid_str: str) -> SExp:
    """Build a (uuid "UUID") node."""
    return node("uuid", uuid_str)


def wire_node(x1: float, y1: float, x2: float, y2: float, uuid_str: str) -> SExp:
    """Build a complete two-point wire."""
    return node("wire", pts(xy(x1, y1), xy(x2, y2)), stroke(), uuid_node(uuid_str))


def title_block(title: str, company: str = "", date: str = "", revision: str = "") -> SExp:
    """Build a title_block, omitting empty fields."""
    tb = node("title_block", node("title", title))
    if date:
        tb.add(node("date", date))
    if revision:
        tb.add(node("rev", revision))
    if company:
        tb.add(node("company", company))
    return tb


def property_node(name: str, value: str, x: float = 0, y: float = 0, hide: bool = True) -> SExp:
    """Build a sheet-level property."""
    effects = node("effects", node("font", node("size", 1.27, 1.27)))
    if hide:
        effects.add(node("hide", Token("yes")))
    return node("property", name, value, at(x, y), effects)


def sheet_instances(sheet_path: str = "/", page: str = "1") -> SExp:
    """Build a sheet_instances section for a single-sheet schematic."""
    return node("sheet_instances", node("path", sheet_path, node("page", page)))
