"""Tests for the string scanner."""

import re

import pytest

from strict_xml_parser.character.scanner import StringScanner


class TestLookahead:
    """Test peek, advance and consume."""

    def test_peek_does_not_advance(self):
        """Test that peek leaves the cursor in place."""
        scanner = StringScanner("hello world")
        assert scanner.peek() == "h"
        assert scanner.peek(5) == "hello"
        assert scanner.char_index == 0

    def test_peek_truncates_at_end(self):
        """Test peeking past the end of the text."""
        scanner = StringScanner("abc")
        assert scanner.peek(10) == "abc"
        scanner.advance(3)
        assert scanner.peek() == ""
        assert scanner.is_end

    def test_consume(self):
        """Test consuming a fixed number of characters."""
        scanner = StringScanner("hello world")
        assert scanner.consume(5) == "hello"
        assert scanner.char_index == 5
        assert scanner.consume() == " "

    def test_advance_is_clamped(self):
        """Test that advancing stays within the text in both directions."""
        scanner = StringScanner("abc")
        scanner.advance(100)
        assert scanner.char_index == scanner.char_count == 3
        scanner.advance(-10)
        assert scanner.char_index == 0

    def test_supplementary_character_is_one_unit(self):
        """Test that a character outside the BMP counts as one position."""
        scanner = StringScanner("\U0001f600x")
        assert scanner.char_count == 2
        assert scanner.consume() == "\U0001f600"
        assert scanner.peek() == "x"


class TestMatching:
    """Test string, predicate and pattern consumption."""

    def test_consume_string(self):
        """Test exact matching at the cursor."""
        scanner = StringScanner("<?xml")
        assert scanner.consume_string("<!") == ""
        assert scanner.char_index == 0
        assert scanner.consume_string("<?") == "<?"
        assert scanner.char_index == 2

    def test_consume_match_fn(self):
        """Test consuming the longest run satisfying a predicate."""
        scanner = StringScanner("abc123")
        assert scanner.consume_match_fn(str.isalpha) == "abc"
        assert scanner.consume_match_fn(str.isalpha) == ""
        assert scanner.char_index == 3

    def test_consume_match_is_anchored(self):
        """Test that patterns only match at the cursor."""
        scanner = StringScanner("  abc")
        assert scanner.consume_match(r"[a-z]+") == ""
        assert scanner.consume_match(re.compile(r"\s+")) == "  "
        assert scanner.consume_match(r"[a-z]+") == "abc"

    def test_consume_until_match(self):
        """Test consuming up to the next match of a pattern."""
        scanner = StringScanner("hello world")
        assert scanner.consume_until_match(r"o") == "hell"
        assert scanner.char_index == 4
        assert scanner.consume_until_match(r"o") == ""
        assert scanner.char_index == 4

    def test_consume_until_match_without_match(self):
        """Test that nothing is consumed when the pattern never occurs."""
        scanner = StringScanner("hello")
        assert scanner.consume_until_match(r"z") == ""
        assert scanner.char_index == 0

    def test_consume_until_string(self):
        """Test consuming up to a literal needle."""
        scanner = StringScanner("a comment -->rest")
        assert scanner.consume_until_string("-->") == "a comment "
        assert scanner.consume_string("-->") == "-->"
        assert scanner.consume_until_string("missing") == ""
        assert scanner.peek(4) == "rest"


class TestReset:
    """Test absolute and relative cursor resets."""

    def test_absolute_reset(self):
        """Test resetting to an absolute index."""
        scanner = StringScanner("hello world")
        scanner.reset(3)
        assert scanner.char_index == 3
        scanner.reset()
        assert scanner.char_index == 0

    def test_relative_reset(self):
        """Test moving backwards with a negative index."""
        scanner = StringScanner("hello world")
        scanner.advance(5)
        scanner.reset(-2)
        assert scanner.char_index == 3

    def test_reset_is_clamped(self):
        """Test that resets never leave the text."""
        scanner = StringScanner("hello")
        scanner.reset(-10)
        assert scanner.char_index == 0
        scanner.reset(100)
        assert scanner.char_index == 5


class TestStorageOffsets:
    """Test translation of character indices to storage offsets."""

    def test_ascii_is_identity(self):
        """Test that ASCII text maps one to one."""
        scanner = StringScanner("<a/>")
        assert [scanner.char_index_to_storage_offset(i) for i in range(5)] == [0, 1, 2, 3, 4]

    def test_utf16_counts_surrogate_pairs(self):
        """Test that a supplementary character takes two UTF-16 code units."""
        scanner = StringScanner("a\U0001f600b")
        assert [scanner.char_index_to_storage_offset(i) for i in range(4)] == [0, 1, 3, 4]

    def test_utf16_bmp_is_identity(self):
        """Test that BMP characters are single UTF-16 units."""
        scanner = StringScanner("\u00e9\u4e2d")
        assert scanner.char_index_to_storage_offset(2) == 2

    def test_utf8_byte_offsets(self):
        """Test UTF-8 byte widths of one to four bytes."""
        scanner = StringScanner("a\u00e9\u4e2d\U0001f600b", storage_encoding="utf-8")
        offsets = [scanner.char_index_to_storage_offset(i) for i in range(6)]
        assert offsets == [0, 1, 3, 6, 10, 11]

    def test_codepoint_offsets(self):
        """Test that code point offsets equal character indices."""
        scanner = StringScanner("a\U0001f600b", storage_encoding="codepoint")
        assert scanner.char_index_to_storage_offset(3) == 3

    def test_defaults_to_cursor(self):
        """Test that the cursor position is used when no index is given."""
        scanner = StringScanner("\U0001f600\U0001f600x")
        scanner.advance(2)
        assert scanner.char_index_to_storage_offset() == 4

    def test_rejects_unknown_encoding(self):
        """Test validation of the storage encoding."""
        with pytest.raises(ValueError, match="storage_encoding must be one of"):
            StringScanner("x", storage_encoding="latin-1")
