"""Grammar engine and reference resolution."""

from .entities import EntityResolver, ReferenceResolutionError
from .grammar import ParserState, XmlGrammarParser, normalize_line_endings

__all__ = [
    "EntityResolver",
    "ReferenceResolutionError",
    "ParserState",
    "XmlGrammarParser",
    "normalize_line_endings",
]
