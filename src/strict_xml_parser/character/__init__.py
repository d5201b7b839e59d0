"""Character layer: XML character classes and the text scanner."""

from .classes import (
    PREDEFINED_ENTITIES,
    find_invalid_char,
    is_name,
    is_name_char,
    is_name_start_char,
    is_reference_char,
    is_whitespace,
    is_xml_char,
    is_xml_code_point,
)
from .scanner import StringScanner

__all__ = [
    "PREDEFINED_ENTITIES",
    "StringScanner",
    "find_invalid_char",
    "is_name",
    "is_name_char",
    "is_name_start_char",
    "is_reference_char",
    "is_whitespace",
    "is_xml_char",
    "is_xml_code_point",
]
