"""
File and text I/O for KiCad schematic S-expressions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..exceptions import FileFormatError, ParseError
from .sexp import SExp, parse_sexp, serialize_sexp

SCHEMATIC_TAG = "kicad_sch"


def parse_schematic_text(text: str, source: Optional[str] = None) -> SExp:
    """
    Parse schematic text into a fresh ``SExp`` tree.

    Args:
        text: Raw ``.kicad_sch`` content
        source: Where the text came from (file name or block slug), for errors

    Raises:
        ParseError: If the text is not a well-formed S-expression
        FileFormatError: If the root node is not ``kicad_sch``
    """
    try:
        sexp = parse_sexp(text)
    except ParseError as e:
        if source is not None:
            e.context.setdefault("source", source)
            raise ParseError(e.message, context=e.context, position=e.position) from e
        raise

    if sexp.tag != SCHEMATIC_TAG:
        raise FileFormatError(
            "Not a KiCad schematic",
            context={"source": source or "<text>", "expected": SCHEMATIC_TAG, "got": sexp.tag},
            suggestions=["This document appears to be a different KiCad file type"],
        )
    return sexp


def load_schematic(path: str | Path) -> SExp:
    """
    Load a KiCad schematic file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        FileFormatError: If the file is not a schematic
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schematic file not found: {path}")
    return parse_schematic_text(path.read_text(encoding="utf-8"), source=str(path))


def save_schematic(sexp: SExp, path: str | Path) -> None:
    """Write a schematic tree to disk."""
    if sexp.tag != SCHEMATIC_TAG:
        raise FileFormatError(
            "Not a KiCad schematic",
            context={"expected": SCHEMATIC_TAG, "got": sexp.tag},
        )
    Path(path).write_text(serialize_sexp(sexp), encoding="utf-8")
