"""
S-expression tree, parser and serializer for KiCad schematic files.

KiCad stores ``.kicad_sch`` documents as Lisp-like S-expressions::

    (kicad_sch
        (version 20231120)
        (generator "eeschema")
        (symbol
            (lib_id "Device:R")
            (at 100 50 0)
            (property "Reference" "R1"
                (at 100 48 0)
            )
        )
        (wire (pts (xy 10 20) (xy 30 40)))
    )

Every parse produces a fresh, independently owned tree. Nothing is shared
between two calls to :func:`parse_sexp`, so documents coming from different
blocks can be transformed without affecting each other.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

from ..exceptions import ParseError


class Token(str):
    """
    A bare (unquoted) word such as ``default``, ``yes`` or ``x``.

    KiCad distinguishes keywords from quoted strings, so the parser keeps
    track of which atoms were written without quotes and the serializer
    writes them back the same way.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Token({str.__repr__(self)})"


# Type alias for S-expression values
SExpValue = Union[str, int, float, "SExp"]


@dataclass
class SExp:
    """
    A tagged S-expression node.

    Attributes:
        tag: The first element of the list (e.g. ``"symbol"``, ``"wire"``)
        values: The remaining elements, atoms or nested ``SExp`` nodes
    """

    tag: str
    values: List[SExpValue] = field(default_factory=list)

    def __getitem__(self, key: Union[int, str]) -> Optional[SExpValue]:
        """Return the value at an index, or the first child with a tag."""
        if isinstance(key, int):
            if 0 <= key < len(self.values):
                return self.values[key]
            return None
        return self.find(key)

    def find(self, tag: str) -> Optional[SExp]:
        """Find the first direct child with the given tag."""
        for v in self.values:
            if isinstance(v, SExp) and v.tag == tag:
                return v
        return None

    def find_all(self, tag: str) -> List[SExp]:
        """Find all direct children with the given tag."""
        return [v for v in self.values if isinstance(v, SExp) and v.tag == tag]

    def iter_children(self) -> Iterator[SExp]:
        """Iterate over direct child nodes, skipping atoms."""
        for v in self.values:
            if isinstance(v, SExp):
                yield v

    def iter_all(self) -> Iterator[SExp]:
        """Iterate over this node and every descendant node, depth first."""
        yield self
        for child in self.iter_children():
            yield from child.iter_all()

    def get_value(self, index: int = 0) -> Optional[SExpValue]:
        if 0 <= index < len(self.values):
            return self.values[index]
        return None

    def get_string(self, index: int = 0) -> Optional[str]:
        val = self.get_value(index)
        if val is None or isinstance(val, SExp):
            return None
        return str(val)

    def get_int(self, index: int = 0) -> Optional[int]:
        val = self.get_value(index)
        if isinstance(val, bool):
            return None
        if isinstance(val, int):
            return val
        if isinstance(val, str):
            try:
                return int(val)
            except ValueError:
                return None
        return None

    def get_float(self, index: int = 0) -> Optional[float]:
        val = self.get_value(index)
        if isinstance(val, (int, float)) and not isinstance(val, bool):
            return float(val)
        if isinstance(val, str):
            try:
                return float(val)
            except ValueError:
                return None
        return None

    def add(self, value: SExpValue) -> SExp:
        """Append a value and return self for chaining."""
        self.values.append(value)
        return self

    def set_value(self, index: int, value: SExpValue) -> None:
        while len(self.values) <= index:
            self.values.append("")
        self.values[index] = value

    def copy(self) -> SExp:
        """Return a deep copy that shares no nodes with this tree."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        if not self.values:
            return f"SExp({self.tag!r})"
        return f"SExp({self.tag!r}, {self.values!r})"


class SExpParser:
    """Recursive-descent parser for one S-expression document."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.length = len(text)

    def parse(self) -> SExp:
        """Parse the entire text and return the root node."""
        self._skip_whitespace()
        if self.pos >= self.length:
            raise ParseError("Empty document", position=self.pos)
        if self.text[self.pos] != "(":
            raise ParseError("Document must start with '('", position=self.pos)
        result = self._parse_list()
        self._skip_whitespace()
        if self.pos < self.length:
            raise ParseError(f"Unexpected content at position {self.pos}", position=self.pos)
        return result

    def _skip_whitespace(self) -> None:
        while self.pos < self.length:
            c = self.text[self.pos]
            if c in " \t\n\r":
                self.pos += 1
            elif c == ";":
                while self.pos < self.length and self.text[self.pos] != "\n":
                    self.pos += 1
            else:
                break

    def _parse_expr(self) -> SExpValue:
        self._skip_whitespace()

        if self.pos >= self.length:
            raise ParseError("Unexpected end of input", position=self.pos)

        c = self.text[self.pos]
        if c == "(":
            return self._parse_list()
        if c == '"':
            return self._parse_string()
        if c == ")":
            raise ParseError(f"Unexpected ')' at position {self.pos}", position=self.pos)
        return self._parse_atom()

    def _parse_list(self) -> SExp:
        """Parse ``(tag value1 value2 ...)``."""
        start = self.pos
        self.pos += 1
        self._skip_whitespace()

        if self.pos >= self.length:
            raise ParseError("Unexpected end of input in list", position=start)

        if self.text[self.pos] == ")":
            self.pos += 1
            return SExp("")

        tag_value = self._parse_expr()
        if isinstance(tag_value, SExp):
            raise ParseError("List tag cannot be a list", position=start)

        result = SExp(str(tag_value))

        while True:
            self._skip_whitespace()
            if self.pos >= self.length:
                raise ParseError(
                    "Unexpected end of input, expected ')'",
                    position=start,
                    suggestions=["Check for a missing closing parenthesis"],
                )
            if self.text[self.pos] == ")":
                self.pos += 1
                break
            result.values.append(self._parse_expr())

        return result

    def _parse_string(self) -> str:
        start = self.pos
        self.pos += 1

        chars = []
        while self.pos < self.length:
            c = self.text[self.pos]
            if c == '"':
                self.pos += 1
                return "".join(chars)
            if c == "\\":
                self.pos += 1
                if self.pos >= self.length:
                    break
                escaped = self.text[self.pos]
                chars.append({"n": "\n", "t": "\t", "r": "\r"}.get(escaped, escaped))
            else:
                chars.append(c)
            self.pos += 1

        raise ParseError("Unterminated string", position=start)

    def _parse_atom(self) -> Union[Token, int, float]:
        start = self.pos

        while self.pos < self.length and self.text[self.pos] not in ' \t\n\r()"':
            self.pos += 1

        token = self.text[start : self.pos]

        try:
            if "." in token or "e" in token.lower():
                return float(token)
            return int(token)
        except ValueError:
            return Token(token)


class SExpSerializer:
    """Serialize an ``SExp`` tree back to KiCad-style text."""

    # Nodes that always fit on one line in KiCad output
    COMPACT_TAGS = frozenset(
        {
            "at",
            "xy",
            "pts",
            "size",
            "start",
            "end",
            "mid",
            "stroke",
            "fill",
            "font",
            "justify",
            "color",
            "uuid",
            "offset",
            "lib_id",
            "unit",
            "in_bom",
            "on_board",
            "dnp",
            "exclude_from_sim",
        }
    )

    def __init__(self, indent: str = "  "):
        self.indent = indent

    def serialize(self, sexp: SExp) -> str:
        lines: List[str] = []
        self._serialize_node(sexp, 0, lines)
        return "\n".join(lines) + "\n"

    def _serialize_node(self, sexp: SExp, depth: int, lines: List[str]) -> None:
        prefix = self.indent * depth
        nested = [v for v in sexp.values if isinstance(v, SExp)]

        if not nested or sexp.tag in self.COMPACT_TAGS:
            lines.append(prefix + self._inline(sexp))
            return

        head = [sexp.tag] + [self.format_value(v) for v in sexp.values if not isinstance(v, SExp)]
        lines.append(f"{prefix}({' '.join(head)}")
        for child in nested:
            self._serialize_node(child, depth + 1, lines)
        lines.append(f"{prefix})")

    def _inline(self, sexp: SExp) -> str:
        parts = [sexp.tag] if sexp.tag else []
        for v in sexp.values:
            parts.append(self._inline(v) if isinstance(v, SExp) else self.format_value(v))
        return f"({' '.join(parts)})"

    def format_value(self, value: SExpValue) -> str:
        if isinstance(value, SExp):
            return self._inline(value)
        if isinstance(value, Token):
            return str(value)
        if isinstance(value, bool):
            return "yes" if value else "no"
        if isinstance(value, str):
            return quote_string(value)
        if isinstance(value, float):
            return format_number(value)
        return str(value)


def format_number(value: float) -> str:
    """Format a coordinate with at most six decimals and no trailing zeros."""
    if value == int(value):
        return str(int(value))
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def quote_string(s: str) -> str:
    escaped = s.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\t", "\\t").replace("\r", "\\r")
    return f'"{escaped}"'


def parse_sexp(text: str) -> SExp:
    """Parse S-expression text into a new ``SExp`` tree."""
    return SExpParser(text).parse()


def serialize_sexp(sexp: SExp, indent: str = "  ") -> str:
    """Serialize an ``SExp`` tree to text (two-space indent, KiCad style)."""
    return SExpSerializer(indent=indent).serialize(sexp)
