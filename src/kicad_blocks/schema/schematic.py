"""
Schematic document model.

A ``Schematic`` owns one ``kicad_sch`` tree. It is used both to read block
schematics and to build the merged board schematic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.builders import node, property_node, sheet_instances, title_block, uuid_node
from ..core.sexp import SExp, serialize_sexp
from ..core.sexp_file import SCHEMATIC_TAG, load_schematic, parse_schematic_text, save_schematic
from ..exceptions import FileFormatError
from .symbol import SymbolInstance
from .wire import Wire

# KiCad 8 schematic file format version
DEFAULT_VERSION = 20231120


@dataclass
class TitleBlock:
    """Schematic title block information."""

    title: str = ""
    date: str = ""
    rev: str = ""
    company: str = ""

    @classmethod
    def from_sexp(cls, sexp: SExp) -> TitleBlock:
        tb = cls()
        if title := sexp.find("title"):
            tb.title = title.get_string(0) or ""
        if date := sexp.find("date"):
            tb.date = date.get_string(0) or ""
        if rev := sexp.find("rev"):
            tb.rev = rev.get_string(0) or ""
        if company := sexp.find("company"):
            tb.company = company.get_string(0) or ""
        return tb


class Schematic:
    """
    High-level interface to a KiCad schematic tree.

    Element accessors (``symbols``, ``wires``, ...) read the tree on each
    call, so they always reflect elements appended through :meth:`append`.
    """

    def __init__(self, sexp: SExp, path: Optional[Path] = None):
        if sexp.tag != SCHEMATIC_TAG:
            raise FileFormatError(
                "Not a schematic",
                context={"expected": SCHEMATIC_TAG, "got": sexp.tag},
            )
        self._sexp = sexp
        self._path = path

    @classmethod
    def load(cls, path: str | Path) -> Schematic:
        path = Path(path)
        return cls(load_schematic(path), path)

    @classmethod
    def from_text(cls, text: str, source: Optional[str] = None) -> Schematic:
        return cls(parse_schematic_text(text, source=source))

    @classmethod
    def new(
        cls,
        title: str,
        root_uuid: str,
        company: str = "",
        paper: str = "A4",
        generator: str = "kicad_blocks",
        version: int = DEFAULT_VERSION,
    ) -> Schematic:
        """Create an empty single-sheet schematic with a title block."""
        root = SExp(
            SCHEMATIC_TAG,
            [
                node("version", version),
                node("generator", generator),
                uuid_node(root_uuid),
                node("paper", paper),
                title_block(title, company=company),
                node("lib_symbols"),
                property_node("Sheetfile", f"{title}.kicad_sch"),
                sheet_instances(),
            ],
        )
        return cls(root)

    def save(self, path: Optional[str | Path] = None) -> None:
        save_path = Path(path) if path else self._path
        if not save_path:
            raise ValueError("No path specified and no original path available")
        save_schematic(self._sexp, save_path)

    def to_string(self) -> str:
        return serialize_sexp(self._sexp)

    @property
    def sexp(self) -> SExp:
        """The underlying S-expression tree."""
        return self._sexp

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def version(self) -> Optional[int]:
        if v := self._sexp.find("version"):
            return v.get_int(0)
        return None

    @property
    def generator(self) -> Optional[str]:
        if g := self._sexp.find("generator"):
            return g.get_string(0)
        return None

    @property
    def title_block(self) -> TitleBlock:
        if tb := self._sexp.find("title_block"):
            return TitleBlock.from_sexp(tb)
        return TitleBlock()

    @property
    def paper(self) -> Optional[str]:
        if p := self._sexp.find("paper"):
            return p.get_string(0)
        return None

    # Element access

    def elements(self, tag: str) -> List[SExp]:
        """Raw top-level element nodes with the given tag."""
        return self._sexp.find_all(tag)

    @property
    def symbols(self) -> List[SymbolInstance]:
        return [SymbolInstance.from_sexp(s) for s in self._sexp.find_all("symbol")]

    @property
    def wires(self) -> List[Wire]:
        return [Wire.from_sexp(w) for w in self._sexp.find_all("wire")]

    def get_symbol(self, reference: str) -> Optional[SymbolInstance]:
        for sym in self.symbols:
            if sym.reference == reference:
                return sym
        return None

    # Library symbols

    @property
    def lib_symbols(self) -> Optional[SExp]:
        return self._sexp.find("lib_symbols")

    def get_lib_symbol(self, lib_id: str) -> Optional[SExp]:
        if lib_syms := self.lib_symbols:
            for sym in lib_syms.find_all("symbol"):
                if sym.get_string(0) == lib_id:
                    return sym
        return None

    def add_lib_symbol(self, definition: SExp) -> bool:
        """
        Add an embedded library symbol unless one with the same id exists.

        Returns:
            True if the definition was added
        """
        lib_id = definition.get_string(0)
        if lib_id is None or self.get_lib_symbol(lib_id) is not None:
            return False
        lib_syms = self.lib_symbols
        if lib_syms is None:
            lib_syms = node("lib_symbols")
            self.append(lib_syms)
        lib_syms.add(definition.copy())
        return True

    # Modification

    def append(self, element: SExp) -> None:
        """Append a top-level element, keeping ``sheet_instances`` last."""
        values = self._sexp.values
        for i, v in enumerate(values):
            if isinstance(v, SExp) and v.tag == "sheet_instances":
                values.insert(i, element)
                return
        values.append(element)

    def __repr__(self) -> str:
        path_str = str(self._path) if self._path else "unsaved"
        return f"Schematic({path_str}, symbols={len(self.symbols)}, wires={len(self.wires)})"


__all__ = ["Schematic", "TitleBlock", "DEFAULT_VERSION"]
