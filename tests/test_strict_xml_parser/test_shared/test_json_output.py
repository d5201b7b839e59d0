"""Tests for non-recursive JSON rendering."""

import json

import pytest

from strict_xml_parser.shared.json_output import dumps

SAMPLE = {
    "file": "caf\u00e9.xml",
    "success": True,
    "time": 1.5,
    "error": None,
    "items": [1, "two", {"three": [], "four": {}}, [[]]],
    "empty": {},
}


class TestDumps:
    """Test agreement with the json module."""

    @pytest.mark.parametrize("indent", [None, 0, 2, 4])
    def test_matches_json_dumps(self, indent):
        assert dumps(SAMPLE, indent=indent) == json.dumps(SAMPLE, indent=indent, ensure_ascii=False)

    @pytest.mark.parametrize("value", [None, True, 0, -2.5, "", "a\"b\n", [], {}])
    def test_scalars_and_empty_containers(self, value):
        assert dumps(value) == json.dumps(value)

    def test_ensure_ascii(self):
        assert dumps(["\u00e9"]) == '["\u00e9"]'
        assert dumps(["\u00e9"], ensure_ascii=True) == '["\\u00e9"]'

    def test_tuples_render_as_arrays(self):
        assert dumps({"pair": (1, 2)}, indent=2) == json.dumps({"pair": [1, 2]}, indent=2)

    def test_deep_nesting(self):
        """Test nesting well past the interpreter's recursion limit."""
        depth = 10000
        value = []
        for _ in range(depth):
            value = [value]
        assert dumps(value) == "[" * depth + "[]" + "]" * depth
