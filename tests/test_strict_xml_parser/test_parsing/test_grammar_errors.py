"""Tests for well-formedness violations reported by the grammar engine."""

import pytest

from strict_xml_parser.parsing.grammar import XmlGrammarParser
from strict_xml_parser.shared.config import ParserConfig
from strict_xml_parser.shared.errors import EntityResolverContractError, ErrorCode, XmlError


def _parse(text, **options):
    return XmlGrammarParser(text, ParserConfig(**options)).parse()


def _error(text, **options) -> XmlError:
    with pytest.raises(XmlError) as exc_info:
        _parse(text, **options)
    return exc_info.value


@pytest.mark.parametrize("text,code", [
    ("", ErrorCode.ROOT_ELEMENT_MISSING),
    ("just text", ErrorCode.ROOT_ELEMENT_MISSING),
    ("<!--only a comment-->", ErrorCode.ROOT_ELEMENT_MISSING),
    ("<a/><b/>", ErrorCode.EXTRA_CONTENT),
    ("<a/>text", ErrorCode.EXTRA_CONTENT),
    ("<a>", ErrorCode.MISSING_END_TAG),
    ("<a></b>", ErrorCode.MISSING_END_TAG),
    ("<a><b></a></b>", ErrorCode.MISSING_END_TAG),
    ("<a", ErrorCode.UNCLOSED_START_TAG),
    ("<a b='1'", ErrorCode.UNCLOSED_START_TAG),
    ("<a></a", ErrorCode.UNCLOSED_END_TAG),
    ('<a b="1" b="2"/>', ErrorCode.DUPLICATE_ATTRIBUTE),
    ("<a b/>", ErrorCode.ATTRIBUTE_VALUE_EXPECTED),
    ("<a b=1/>", ErrorCode.ATTRIBUTE_VALUE_EXPECTED),
    ('<a xml:space="keep"/>', ErrorCode.INVALID_XML_SPACE),
    ('<a b="<"/>', ErrorCode.UNESCAPED_LT_IN_ATTRIBUTE),
    ('<a b="x', ErrorCode.UNCLOSED_ATTRIBUTE),
    ("<a><![CDATA[x</a>", ErrorCode.UNCLOSED_CDATA),
    ("<a><!-- x</a>", ErrorCode.UNCLOSED_COMMENT),
    ("<a><!-- a -- b --></a>", ErrorCode.FORBIDDEN_DOUBLE_HYPHEN_IN_COMMENT),
    ("<a>]]></a>", ErrorCode.CDATA_CLOSE_IN_CONTENT),
    ("<a>\x01</a>", ErrorCode.INVALID_CHARACTER),
    ("<a>\ufffe</a>", ErrorCode.INVALID_CHARACTER),
    ('<a b="\x0b"/>', ErrorCode.INVALID_CHARACTER),
    ("<a><!--\x00--></a>", ErrorCode.INVALID_CHARACTER),
    ("<a>&#0;</a>", ErrorCode.INVALID_CHARACTER_REFERENCE),
    ("<a>&#xD800;</a>", ErrorCode.INVALID_CHARACTER_REFERENCE),
    ("<a>&#xZZ;</a>", ErrorCode.INVALID_CHARACTER_REFERENCE),
    ("<a>&amp</a>", ErrorCode.UNTERMINATED_REFERENCE),
    ("<a>& b</a>", ErrorCode.UNTERMINATED_REFERENCE),
    ("<a>&bogus;</a>", ErrorCode.UNDEFINED_ENTITY),
    ('<a b="&bogus;"/>', ErrorCode.UNDEFINED_ENTITY),
    ("<?xml?><a/>", ErrorCode.INVALID_XML_DECLARATION),
    ('<?xml version="2.0"?><a/>', ErrorCode.INVALID_XML_DECLARATION),
    ('<?xml version="1.0" encoding="8bit"?><a/>', ErrorCode.INVALID_XML_DECLARATION),
    ('<?xml version="1.0" standalone="maybe"?><a/>', ErrorCode.INVALID_XML_DECLARATION),
    ('<?xml version="1.0"encoding="UTF-8"?><a/>', ErrorCode.INVALID_XML_DECLARATION),
    ('<?xml version="1.0"', ErrorCode.INVALID_XML_DECLARATION),
    ('<a/><?xml version="1.0"?>', ErrorCode.XML_DECLARATION_NOT_ALLOWED),
    (' <?xml version="1.0"?><a/>', ErrorCode.XML_DECLARATION_NOT_ALLOWED),
    ('<a><?XML version="1.0"?></a>', ErrorCode.XML_DECLARATION_NOT_ALLOWED),
    ("<? x?><a/>", ErrorCode.INVALID_PROCESSING_INSTRUCTION),
    ("<?pi-data?x?><a/>", ErrorCode.INVALID_PROCESSING_INSTRUCTION),
    ("<?pi data<a/>", ErrorCode.UNCLOSED_PROCESSING_INSTRUCTION),
    ("<!DOCTYPE a<a/>", ErrorCode.UNCLOSED_DOCTYPE),
    ("<!DOCTYPE><a/>", ErrorCode.MISSING_DOCTYPE_NAME),
    ("<!DOCTYPE a SYSTEM><a/>", ErrorCode.MISSING_PUBLIC_OR_SYSTEM_IDENTIFIER),
    ('<!DOCTYPE a PUBLIC "x"><a/>', ErrorCode.MISSING_PUBLIC_OR_SYSTEM_IDENTIFIER),
    ('<!DOCTYPE a PUBLIC "{" "x"><a/>', ErrorCode.INVALID_PUBLIC_IDENTIFIER_CHARACTER),
    ('<!DOCTYPE a SYSTEM "x><a/>', ErrorCode.MISSING_END_QUOTE),
    ("<!DOCTYPE a [ <a/>", ErrorCode.UNCLOSED_INTERNAL_SUBSET),
    ("<!DOCTYPE a><!DOCTYPE a><a/>", ErrorCode.ROOT_ELEMENT_MISSING),
])
def test_error_codes(text, code):
    """Test the code reported for each kind of violation."""
    assert _error(text).code is code


class TestErrorPositions:
    """Test where errors point."""

    def test_cdata_close_in_content(self):
        """Test offset, line, column and the rendered message."""
        error = _error("<a>foo]]></a>")
        assert error.code is ErrorCode.CDATA_CLOSE_IN_CONTENT
        assert error.offset == 6
        assert (error.line, error.column) == (1, 7)
        assert error.message == (
            "Element content may not contain the CDATA section close delimiter `]]>`"
            " (line 1, column 7)\n"
            "  <a>foo]]></a>\n"
            "        ^\n"
        )
        assert str(error) == error.message

    def test_offset_refers_to_crlf_input(self):
        """Test that the offset indexes the original text while lines use LF."""
        text = "<a>\r\n<b>\r\n&bogus;</b></a>"
        error = _error(text)
        assert text[error.offset:].startswith("&bogus;")
        assert error.offset == 10
        assert (error.line, error.column) == (3, 1)
        assert error.excerpt == "&bogus;</b></a>"

    def test_undefined_entity_points_at_ampersand(self):
        """Test that reference errors point at the start of the reference."""
        error = _error("<a>&bogus;</a>")
        assert error.offset == 3
        assert error.description == "Named entity isn't defined: &bogus;"

    def test_invalid_character_reference_points_at_ampersand(self):
        error = _error("<a>x&#1;</a>")
        assert error.offset == 4

    def test_mismatched_end_tag_points_at_end_tag(self):
        """Test that a mismatched end tag is reported at its '</'."""
        error = _error("<a></b>")
        assert error.offset == 3
        assert error.description == "Missing end tag for element a"

    def test_invalid_character_offset(self):
        error = _error("<a>x\x01</a>")
        assert error.offset == 4
        assert error.description == "Invalid character"

    def test_duplicate_attribute_points_at_name(self):
        error = _error('<a b="1" b="2"/>')
        assert error.offset == 9
        assert error.description == "Duplicate attribute: b"

    def test_invalid_xml_space_points_at_name(self):
        error = _error('<a c="1" xml:space="x"/>')
        assert error.offset == 9

    def test_extra_content_offset(self):
        assert _error("<a/><b/>").offset == 4

    def test_root_missing_at_end(self):
        error = _error("<!--c-->")
        assert error.offset == 8
        assert (error.line, error.column) == (1, 9)

    def test_multiline_message(self):
        """Test line counting and the excerpt of the failing line."""
        error = _error("<a>\n<b>\n  </c>\n</b></a>")
        assert error.code is ErrorCode.MISSING_END_TAG
        assert (error.line, error.column) == (3, 3)
        assert error.message == (
            "Missing end tag for element b (line 3, column 3)\n"
            "    </c>\n"
            "    ^\n"
        )

    def test_crlf_input_counts_one_line_break(self):
        """Test that CRLF counts as a single line break."""
        error = _error("<a>\r\n\r\n]]></a>")
        assert (error.line, error.column) == (3, 1)
        assert error.offset == 7

    def test_long_line_excerpt_is_windowed(self):
        """Test that excerpts of long lines are cut around the column."""
        text = "<a>" + "x" * 60 + "]]>" + "y" * 40 + "</a>"
        error = _error(text)
        assert error.column == 64
        assert len(error.excerpt) == 50
        assert error.excerpt == text[44:94]
        caret_line = error.message.rstrip("\n").split("\n")[-1]
        excerpt_line = error.message.split("\n")[1]
        assert excerpt_line[caret_line.index("^")] == "]"

    def test_short_column_on_long_line(self):
        """Test that early columns keep the start of a long line."""
        text = '<a b="<"' + " " * 80 + "/>"
        error = _error(text)
        assert error.excerpt == text[:50]
        assert error.message.split("\n")[2] == " " * 8 + "^"


class TestEntityHooks:
    """Test errors around the undefined-entity hook."""

    def test_contract_error_propagates(self):
        """Test that a hook returning a non-string aborts the parse."""
        with pytest.raises(EntityResolverContractError):
            _parse("<a>&x;</a>", resolve_undefined_entity=lambda reference: 42)

    def test_hook_declining_falls_back_to_error(self):
        error = _error("<a>&x;</a>", resolve_undefined_entity=lambda reference: None)
        assert error.code is ErrorCode.UNDEFINED_ENTITY

    def test_character_references_are_never_ignored(self):
        """Test that ignoring undefined entities does not cover bad code points."""
        error = _error("<a>&#0;</a>", ignore_undefined_entities=True)
        assert error.code is ErrorCode.INVALID_CHARACTER_REFERENCE
