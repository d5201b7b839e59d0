"""Cursor-based text scanner used by the grammar engine.

Positions are code point indices into the scanned text. Reported offsets can
be translated into storage units (UTF-16 code units by default) through
:meth:`StringScanner.char_index_to_storage_offset`; the translation table is
only built the first time it is needed and only when the text contains
characters wider than one storage unit.
"""

import re
from bisect import bisect_left
from typing import Callable, List, Optional, Pattern, Union

STORAGE_ENCODINGS = ("utf-16", "utf-8", "codepoint")

PatternLike = Union[str, Pattern[str]]

_NON_ASCII = re.compile(r"[^\x00-\x7f]")
_ASTRAL = re.compile("[\U00010000-\U0010ffff]")


def _compile(pattern: PatternLike) -> Pattern[str]:
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def _storage_width(char: str, encoding: str) -> int:
    code_point = ord(char)
    if encoding == "utf-16":
        return 2 if code_point > 0xFFFF else 1
    if code_point < 0x80:
        return 1
    if code_point < 0x800:
        return 2
    if code_point < 0x10000:
        return 3
    return 4


class StringScanner:
    """Scanner over an in-memory string.

    Every ``consume_*`` method returns the consumed text and leaves the cursor
    untouched when nothing matched, so callers can try alternatives and fall
    back with :meth:`reset`.
    """

    def __init__(self, text: str, storage_encoding: str = "utf-16") -> None:
        if storage_encoding not in STORAGE_ENCODINGS:
            raise ValueError(
                f"storage_encoding must be one of {', '.join(STORAGE_ENCODINGS)}"
            )
        self.text = text
        self.char_index = 0
        self.char_count = len(text)
        self.storage_encoding = storage_encoding
        # (positions of wide characters, cumulative extra storage units)
        self._wide_positions: Optional[List[int]] = None
        self._extra_units: Optional[List[int]] = None
        self._identity_offsets: Optional[bool] = None

    @property
    def is_end(self) -> bool:
        """Whether the cursor has reached the end of the text."""
        return self.char_index >= self.char_count

    def advance(self, count: int = 1) -> None:
        self.char_index = max(0, min(self.char_index + count, self.char_count))

    def peek(self, count: int = 1) -> str:
        return self.text[self.char_index:self.char_index + count]

    def consume(self, count: int = 1) -> str:
        chars = self.peek(count)
        self.advance(len(chars))
        return chars

    def consume_string(self, expected: str) -> str:
        """Consume ``expected`` if the text at the cursor starts with it."""
        if expected and self.text.startswith(expected, self.char_index):
            self.advance(len(expected))
            return expected
        return ""

    def consume_match_fn(self, predicate: Callable[[str], bool]) -> str:
        """Consume the longest run of characters satisfying ``predicate``."""
        start = end = self.char_index
        while end < self.char_count and predicate(self.text[end]):
            end += 1
        self.char_index = end
        return self.text[start:end]

    def consume_match(self, pattern: PatternLike) -> str:
        """Consume the text matched by ``pattern`` anchored at the cursor."""
        match = _compile(pattern).match(self.text, self.char_index)
        if match is None:
            return ""
        self.char_index = match.end()
        return match.group(0)

    def consume_until_match(self, pattern: PatternLike) -> str:
        """Consume text up to (not including) the next match of ``pattern``.

        Nothing is consumed when ``pattern`` does not occur after the cursor.
        """
        match = _compile(pattern).search(self.text, self.char_index)
        if match is None:
            return ""
        return self._consume_to(match.start())

    def consume_until_string(self, needle: str) -> str:
        """Consume text up to (not including) the next occurrence of ``needle``."""
        index = self.text.find(needle, self.char_index)
        if index == -1:
            return ""
        return self._consume_to(index)

    def reset(self, index: int = 0) -> None:
        """Move the cursor.

        A non-negative ``index`` is an absolute position; a negative one moves
        the cursor back by that many characters. Both are clamped to the text.
        """
        if index >= 0:
            self.char_index = min(index, self.char_count)
        else:
            self.char_index = max(0, self.char_index + index)

    def char_index_to_storage_offset(self, index: Optional[int] = None) -> int:
        """Translate a character index into a storage offset.

        Args:
            index: Character index, defaults to the cursor position

        Returns:
            Offset in units of ``storage_encoding``
        """
        if index is None:
            index = self.char_index
        index = max(0, min(index, self.char_count))

        if self._identity_offsets is None:
            self._build_offset_table()
        if self._identity_offsets:
            return index

        assert self._wide_positions is not None and self._extra_units is not None
        # Number of wide characters strictly before ``index``.
        preceding = bisect_left(self._wide_positions, index)
        if preceding == 0:
            return index
        return index + self._extra_units[preceding - 1]

    def _consume_to(self, index: int) -> str:
        consumed = self.text[self.char_index:index]
        self.char_index = index
        return consumed

    def _build_offset_table(self) -> None:
        if self.storage_encoding == "codepoint":
            self._identity_offsets = True
            return
        wide = _ASTRAL if self.storage_encoding == "utf-16" else _NON_ASCII
        positions: List[int] = []
        extra: List[int] = []
        total = 0
        for match in wide.finditer(self.text):
            total += _storage_width(match.group(0), self.storage_encoding) - 1
            positions.append(match.start())
            extra.append(total)
        self._identity_offsets = not positions
        self._wide_positions = positions
        self._extra_units = extra
