"""
Symbol instance model.

A read-only view of a placed component, used for summaries and tests of
merged documents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..core.sexp import SExp


@dataclass
class SymbolInstance:
    """A symbol placed in a schematic."""

    lib_id: str
    uuid: str = ""
    position: Tuple[float, float] = (0, 0)
    rotation: float = 0
    properties: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_sexp(cls, sexp: SExp) -> SymbolInstance:
        lib_id = ""
        uuid = ""
        pos = (0.0, 0.0)
        rot = 0.0
        props: Dict[str, str] = {}

        if lib := sexp.find("lib_id"):
            lib_id = lib.get_string(0) or ""
        if at := sexp.find("at"):
            pos = (at.get_float(0) or 0, at.get_float(1) or 0)
            rot = at.get_float(2) or 0
        if uuid_child := sexp.find("uuid"):
            uuid = uuid_child.get_string(0) or ""
        for prop in sexp.find_all("property"):
            name = prop.get_string(0)
            if name:
                props[name] = prop.get_string(1) or ""

        return cls(lib_id=lib_id, uuid=uuid, position=pos, rotation=rot, properties=props)

    @property
    def reference(self) -> str:
        return self.properties.get("Reference", "")

    @property
    def value(self) -> str:
        return self.properties.get("Value", "")

    @property
    def footprint(self) -> str:
        return self.properties.get("Footprint", "")

    def __repr__(self) -> str:
        return f"SymbolInstance({self.reference or self.lib_id} @ {self.position})"
