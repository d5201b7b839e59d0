"""XML 1.0 (Fifth Edition) character classes.

The range tables below are the productions ``Char``, ``NameStartChar`` and
``NameChar`` expressed as inclusive code point pairs. Predicates accept a
single character (one code point); compiled patterns built from the same
tables are used by the scanner to consume whole runs at once.
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, Tuple

CodePointRange = Tuple[int, int]

# [2] Char
XML_CHAR_RANGES: Tuple[CodePointRange, ...] = (
    (0x0009, 0x0009),  # Tab
    (0x000A, 0x000A),  # Line Feed
    (0x000D, 0x000D),  # Carriage Return
    (0x0020, 0xD7FF),  # BMP below the surrogate block
    (0xE000, 0xFFFD),  # BMP above the surrogate block, minus U+FFFE/U+FFFF
    (0x10000, 0x10FFFF),  # Supplementary planes
)

# [4] NameStartChar
NAME_START_CHAR_RANGES: Tuple[CodePointRange, ...] = (
    (0x003A, 0x003A),  # ':'
    (0x0041, 0x005A),  # A-Z
    (0x005F, 0x005F),  # '_'
    (0x0061, 0x007A),  # a-z
    (0x00C0, 0x00D6),
    (0x00D8, 0x00F6),
    (0x00F8, 0x02FF),
    (0x0370, 0x037D),
    (0x037F, 0x1FFF),
    (0x200C, 0x200D),  # ZWNJ, ZWJ
    (0x2070, 0x218F),
    (0x2C00, 0x2FEF),
    (0x3001, 0xD7FF),
    (0xF900, 0xFDCF),
    (0xFDF0, 0xFFFD),
    (0x10000, 0xEFFFF),
)

# [4a] NameChar, in addition to NameStartChar
NAME_CHAR_EXTRA_RANGES: Tuple[CodePointRange, ...] = (
    (0x002D, 0x002E),  # '-', '.'
    (0x0030, 0x0039),  # 0-9
    (0x00B7, 0x00B7),  # Middle dot
    (0x0300, 0x036F),  # Combining diacritical marks
    (0x203F, 0x2040),  # Undertie, character tie
)

NAME_CHAR_RANGES: Tuple[CodePointRange, ...] = tuple(
    sorted(NAME_START_CHAR_RANGES + NAME_CHAR_EXTRA_RANGES)
)

# [3] S
WHITESPACE_CHARS = frozenset(" \t\r\n")

PREDEFINED_ENTITIES: Mapping[str, str] = MappingProxyType({
    "amp": "&",
    "apos": "'",
    "gt": ">",
    "lt": "<",
    "quot": '"',
})


def _in_ranges(code_point: int, ranges: Tuple[CodePointRange, ...]) -> bool:
    for start, end in ranges:
        if code_point < start:
            return False
        if code_point <= end:
            return True
    return False


def _character_class(ranges: Tuple[CodePointRange, ...]) -> str:
    """Render a range table as the body of a regex character class."""
    parts = []
    for start, end in ranges:
        if start == end:
            parts.append(re.escape(chr(start)))
        else:
            parts.append(f"{re.escape(chr(start))}-{re.escape(chr(end))}")
    return "".join(parts)


_NAME_START_CLASS = _character_class(NAME_START_CHAR_RANGES)
_NAME_CLASS = _character_class(NAME_CHAR_RANGES)

NAME_PATTERN: Pattern[str] = re.compile(f"[{_NAME_START_CLASS}][{_NAME_CLASS}]*")
NAME_CHARS_PATTERN: Pattern[str] = re.compile(f"[{_NAME_CLASS}]+")
INVALID_CHAR_PATTERN: Pattern[str] = re.compile(
    f"[^{_character_class(XML_CHAR_RANGES)}]"
)


def is_xml_code_point(code_point: int) -> bool:
    """Return True if ``code_point`` matches the ``Char`` production."""
    return _in_ranges(code_point, XML_CHAR_RANGES)


def is_xml_char(char: str) -> bool:
    """Return True if the single character ``char`` is a legal XML character."""
    return len(char) == 1 and _in_ranges(ord(char), XML_CHAR_RANGES)


def is_name_start_char(char: str) -> bool:
    """Return True if ``char`` may begin an XML name."""
    return len(char) == 1 and _in_ranges(ord(char), NAME_START_CHAR_RANGES)


def is_name_char(char: str) -> bool:
    """Return True if ``char`` may appear after the first character of a name."""
    return len(char) == 1 and _in_ranges(ord(char), NAME_CHAR_RANGES)


def is_whitespace(char: str) -> bool:
    """Return True for the four XML whitespace characters."""
    return char in WHITESPACE_CHARS and len(char) == 1


def is_reference_char(char: str) -> bool:
    """Return True if ``char`` may appear in the body of an entity or character reference."""
    return char == "#" or is_name_char(char)


def is_name(text: str) -> bool:
    """Return True if the whole of ``text`` is a single XML name."""
    return NAME_PATTERN.fullmatch(text) is not None


def find_invalid_char(text: str, start: int = 0) -> Optional[int]:
    """Locate the first character in ``text`` that is not a legal XML character.

    Args:
        text: Text to check
        start: Index to begin searching from

    Returns:
        Index of the offending character, or None if every character is legal
    """
    match = INVALID_CHAR_PATTERN.search(text, start)
    return match.start() if match else None
