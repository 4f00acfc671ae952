"""S-expression parsing, building and file I/O."""

from .sexp import SExp, SExpParser, SExpSerializer, Token, parse_sexp, serialize_sexp
from .sexp_file import load_schematic, parse_schematic_text, save_schematic

__all__ = [
    "SExp",
    "SExpParser",
    "SExpSerializer",
    "Token",
    "parse_sexp",
    "serialize_sexp",
    "load_schematic",
    "parse_schematic_text",
    "save_schematic",
]
