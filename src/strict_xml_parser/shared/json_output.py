"""JSON rendering for arbitrarily deep structures.

:func:`json.dumps` recurses once per nesting level, so the structured form of
a deeply nested document exceeds the interpreter's recursion limit long before
the parser's own limits are reached. :func:`dumps` walks dicts and lists with
an explicit stack and hands only scalars and keys to :mod:`json`; its output
matches ``json.dumps`` with the same ``indent`` and ``ensure_ascii``.
"""

import json
from typing import Any, List, Optional, Tuple

_LITERAL = 0
_VALUE = 1


def _line_break(indent: Optional[int], depth: int) -> str:
    if indent is None:
        return ""
    return "\n" + " " * (indent * depth)


def dumps(value: Any, indent: Optional[int] = None, ensure_ascii: bool = False) -> str:
    """Serialize dicts, lists and JSON scalars to a JSON string.

    Args:
        value: Data to render; containers must be dicts with string keys or lists
        indent: Spaces per nesting level, or None for single-line output
        ensure_ascii: Escape non-ASCII characters

    Returns:
        The JSON text
    """
    item_separator = ", " if indent is None else ","
    parts: List[str] = []
    stack: List[Tuple[int, Any, int]] = [(_VALUE, value, 0)]
    while stack:
        kind, item, depth = stack.pop()
        if kind == _LITERAL:
            parts.append(item)
            continue
        if not isinstance(item, (dict, list, tuple)) or not item:
            parts.append(json.dumps(item, ensure_ascii=ensure_ascii))
            continue

        is_object = isinstance(item, dict)
        entries = item.items() if is_object else enumerate(item)
        pending: List[Tuple[int, Any, int]] = []
        for position, (key, entry) in enumerate(entries):
            prefix = item_separator if position else ""
            prefix += _line_break(indent, depth + 1)
            if is_object:
                prefix += json.dumps(key, ensure_ascii=ensure_ascii) + ": "
            pending.append((_LITERAL, prefix, depth))
            pending.append((_VALUE, entry, depth + 1))
        closing = "}" if is_object else "]"
        pending.append((_LITERAL, _line_break(indent, depth) + closing, depth))

        parts.append("{" if is_object else "[")
        stack.extend(reversed(pending))
    return "".join(parts)
