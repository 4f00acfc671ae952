"""Tests for S-expression parsing, serialization and file I/O."""

import pytest

from kicad_blocks.core.builders import at, fmt, title_block, wire_node
from kicad_blocks.core.sexp import SExp, Token, format_number, parse_sexp, serialize_sexp
from kicad_blocks.core.sexp_file import load_schematic, parse_schematic_text, save_schematic
from kicad_blocks.exceptions import FileFormatError, ParseError


class TestParser:
    """Tests for parse_sexp."""

    def test_simple_list(self):
        sexp = parse_sexp("(at 10 20.5 90)")
        assert sexp.tag == "at"
        assert sexp.values == [10, 20.5, 90]
        assert isinstance(sexp.values[0], int)
        assert isinstance(sexp.values[1], float)

    def test_nested_and_strings(self):
        sexp = parse_sexp('(symbol (lib_id "Device:R") (property "Reference" "R1"))')
        assert sexp.find("lib_id").get_string(0) == "Device:R"
        prop = sexp.find("property")
        assert prop.get_string(0) == "Reference"
        assert prop.get_string(1) == "R1"

    def test_bare_words_are_tokens(self):
        """Unquoted words parse as Token so they serialize without quotes."""
        sexp = parse_sexp("(stroke (width 0) (type default))")
        value = sexp.find("type").get_value(0)
        assert isinstance(value, Token)
        assert value == "default"

    def test_escaped_string(self):
        sexp = parse_sexp(r'(text "say \"hi\"\nnow")')
        assert sexp.get_string(0) == 'say "hi"\nnow'

    def test_comments_skipped(self):
        sexp = parse_sexp("; header\n(version 1) ; trailing\n")
        assert sexp.tag == "version"
        assert sexp.get_int(0) == 1

    def test_missing_close_paren(self):
        with pytest.raises(ParseError, match="expected '\\)'"):
            parse_sexp("(kicad_sch (version 1)")

    def test_unterminated_string(self):
        with pytest.raises(ParseError, match="Unterminated string"):
            parse_sexp('(title "oops)')

    def test_trailing_content(self):
        with pytest.raises(ParseError, match="Unexpected content"):
            parse_sexp("(a 1) (b 2)")

    def test_empty_document(self):
        with pytest.raises(ParseError, match="Empty document"):
            parse_sexp("   ")

    def test_independent_trees(self):
        """Two parses of the same text share no nodes."""
        text = "(wire (pts (xy 1 2) (xy 3 4)))"
        first = parse_sexp(text)
        second = parse_sexp(text)
        first.find("pts").find("xy").values[0] = 99
        assert second.find("pts").find("xy").get_int(0) == 1


class TestSExpNode:
    """Tests for SExp accessors."""

    def test_find_all_and_iter_all(self):
        sexp = parse_sexp("(root (a 1) (b (a 2)) (a 3))")
        assert [n.get_int(0) for n in sexp.find_all("a")] == [1, 3]
        assert [n.tag for n in sexp.iter_all()] == ["root", "a", "b", "a", "a"]

    def test_getitem(self):
        sexp = parse_sexp("(at 1 2 3)")
        assert sexp[0] == 1
        assert sexp[5] is None
        assert parse_sexp("(x (y 1))")["y"].get_int(0) == 1

    def test_set_value_extends(self):
        sexp = SExp("path")
        sexp.set_value(1, "x")
        assert sexp.values == ["", "x"]

    def test_copy_is_deep(self):
        sexp = parse_sexp("(a (b 1))")
        clone = sexp.copy()
        clone.find("b").values[0] = 2
        assert sexp.find("b").get_int(0) == 1


class TestSerializer:
    """Tests for serialize_sexp."""

    def test_compact_tags_inline(self):
        text = serialize_sexp(wire_node(0, 0, 12.7, 0, "abc"))
        assert "(pts (xy 0 0) (xy 12.7 0))" in text
        assert "(stroke (width 0) (type default))" in text
        assert '(uuid "abc")' in text

    def test_strings_quoted_tokens_bare(self):
        text = serialize_sexp(parse_sexp('(effects (hide yes) (name "x y"))'))
        assert "(hide yes)" in text
        assert '(name "x y")' in text

    def test_round_trip_preserves_tree(self):
        """Serialized output parses back to an equal tree."""
        original = parse_sexp('(kicad_sch (version 20231120) (title_block (title "Demo")))')
        assert parse_sexp(serialize_sexp(original)) == original

    def test_format_number(self):
        assert format_number(5.0) == "5"
        assert format_number(24.4) == "24.4"
        assert format_number(0.1 + 0.2) == "0.3"
        assert format_number(-0.0000001) == "0"


class TestBuilders:
    """Tests for node builders."""

    def test_fmt_rounds_and_ints(self):
        assert fmt(38.099999999999994) == 38.1
        assert fmt(25.0) == 25
        assert isinstance(fmt(25.0), int)

    def test_at(self):
        assert at(1.5, 2, 90).values == [1.5, 2, 90]

    def test_title_block_omits_empty(self):
        tb = title_block("weather-station", company="PHAESTUS Generated")
        assert tb.find("title").get_string(0) == "weather-station"
        assert tb.find("company").get_string(0) == "PHAESTUS Generated"
        assert tb.find("date") is None


class TestSchematicFile:
    """Tests for schematic text and file I/O."""

    def test_wrong_root_tag(self):
        with pytest.raises(FileFormatError, match="Not a KiCad schematic"):
            parse_schematic_text("(kicad_pcb (version 1))", source="board")

    def test_parse_error_carries_source(self):
        with pytest.raises(ParseError) as exc_info:
            parse_schematic_text("(kicad_sch (version 1)", source="sensor-bme280")
        assert exc_info.value.context["source"] == "sensor-bme280"

    def test_save_and_load(self, tmp_path):
        sexp = parse_schematic_text("(kicad_sch (version 20231120))")
        path = tmp_path / "out.kicad_sch"
        save_schematic(sexp, path)
        assert load_schematic(path) == sexp

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_schematic(tmp_path / "missing.kicad_sch")
