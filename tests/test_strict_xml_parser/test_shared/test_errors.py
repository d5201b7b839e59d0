"""Tests for error reporting helpers."""

import pytest

from strict_xml_parser.shared.errors import (
    EntityResolverContractError,
    ErrorCode,
    ErrorLocation,
    XmlError,
    locate_error,
)


class TestLocateError:
    """Test line, column and excerpt computation."""

    def test_first_line(self):
        location = locate_error("<a>x</a>", 3)
        assert (location.line, location.column) == (1, 4)
        assert location.excerpt == "<a>x</a>"
        assert location.excerpt_start == 0

    def test_later_line(self):
        location = locate_error("one\ntwo\nthree", 9)
        assert (location.line, location.column) == (3, 2)
        assert location.excerpt == "three"

    def test_offset_at_line_break(self):
        location = locate_error("ab\ncd", 2)
        assert (location.line, location.column) == (1, 3)
        assert location.excerpt == "ab"

    def test_offset_at_end(self):
        location = locate_error("<a>", 3)
        assert (location.line, location.column) == (1, 4)

    def test_offset_clamped(self):
        assert locate_error("abc", 99).column == 4
        assert locate_error("abc", -5).column == 1

    def test_empty_text(self):
        location = locate_error("", 0)
        assert (location.line, location.column, location.excerpt) == (1, 1, "")

    def test_long_line_start(self):
        text = "x" * 100
        location = locate_error(text, 10)
        assert location.excerpt == "x" * 50
        assert location.excerpt_start == 0

    def test_long_line_window(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(100))
        location = locate_error(text, 59)
        assert location.column == 60
        assert location.excerpt_start == 40
        assert location.excerpt == text[40:90]

    def test_long_line_window_at_end(self):
        text = "y" * 60
        location = locate_error(text, 59)
        assert location.excerpt == text[40:]


class TestErrorLocation:
    """Test the location value object."""

    def test_caret(self):
        assert ErrorLocation(1, 1, "x").caret == "  ^"
        assert ErrorLocation(1, 45, "x" * 50, excerpt_start=25).caret == " " * 21 + "^"

    @pytest.mark.parametrize("line,column,excerpt_start", [
        (0, 1, 0),
        (1, 0, 0),
        (1, 1, -1),
    ])
    def test_invalid_values(self, line, column, excerpt_start):
        with pytest.raises(ValueError):
            ErrorLocation(line, column, "", excerpt_start)


class TestXmlError:
    """Test the exception type."""

    def test_attributes(self):
        error = XmlError("Broken", ErrorCode.EXTRA_CONTENT, "<a/>\n<b/>", 5)
        assert error.description == "Broken"
        assert error.code is ErrorCode.EXTRA_CONTENT
        assert error.offset == 5
        assert (error.line, error.column) == (2, 1)
        assert error.excerpt == "<b/>"
        assert error.message == "Broken (line 2, column 1)\n  <b/>\n  ^\n"
        assert str(error) == error.message

    def test_source_offset_is_separate_from_location(self):
        error = XmlError("Broken", ErrorCode.EXTRA_CONTENT, "<a/>\n<b/>", 5, offset=6)
        assert error.offset == 6
        assert (error.line, error.column) == (2, 1)
        assert error.to_dict()["offset"] == 6

    def test_to_dict(self):
        error = XmlError("Broken", ErrorCode.MISSING_END_TAG, "<a>", 3)
        assert error.to_dict() == {
            "code": "MissingEndTag",
            "description": "Broken",
            "offset": 3,
            "line": 1,
            "column": 4,
            "excerpt": "<a>",
        }

    def test_error_codes_are_strings(self):
        assert ErrorCode.CDATA_CLOSE_IN_CONTENT == "CdataCloseInContent"
        assert len({code.value for code in ErrorCode}) == len(ErrorCode)

    def test_contract_error_is_type_error(self):
        assert issubclass(EntityResolverContractError, TypeError)
        assert not issubclass(EntityResolverContractError, XmlError)
