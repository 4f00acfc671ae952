"""
Wire models.

Wires are ordered point lists; the composer only ever emits two-point wires,
but block schematics may contain longer polylines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from ..core.builders import pts, stroke, uuid_node, xy
from ..core.sexp import SExp

Point = Tuple[float, float]


@dataclass
class Wire:
    """A wire through an ordered list of points."""

    points: List[Point] = field(default_factory=list)
    uuid: str = ""
    stroke_width: float = 0
    stroke_type: str = "default"

    @classmethod
    def from_sexp(cls, sexp: SExp) -> Wire:
        points: List[Point] = []
        uuid = ""
        stroke_width = 0.0
        stroke_type = "default"

        if pts_node := sexp.find("pts"):
            for xy_node in pts_node.find_all("xy"):
                points.append((xy_node.get_float(0) or 0.0, xy_node.get_float(1) or 0.0))

        if uuid_child := sexp.find("uuid"):
            uuid = uuid_child.get_string(0) or ""

        if stroke_node := sexp.find("stroke"):
            if w := stroke_node.find("width"):
                stroke_width = w.get_float(0) or 0
            if t := stroke_node.find("type"):
                stroke_type = t.get_string(0) or "default"

        return cls(points=points, uuid=uuid, stroke_width=stroke_width, stroke_type=stroke_type)

    def to_sexp(self) -> SExp:
        node = SExp("wire", [pts(*(xy(x, y) for x, y in self.points))])
        node.add(stroke(self.stroke_width, self.stroke_type))
        if self.uuid:
            node.add(uuid_node(self.uuid))
        return node

    @property
    def start(self) -> Point:
        return self.points[0] if self.points else (0.0, 0.0)

    @property
    def end(self) -> Point:
        return self.points[-1] if self.points else (0.0, 0.0)

    @property
    def length(self) -> float:
        """Total polyline length."""
        total = 0.0
        for (x1, y1), (x2, y2) in zip(self.points, self.points[1:]):
            total += ((x2 - x1) ** 2 + (y2 - y1) ** 2) ** 0.5
        return total

    def __repr__(self) -> str:
        return f"Wire({self.start} -> {self.end})"
