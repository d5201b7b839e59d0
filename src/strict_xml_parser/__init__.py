"""Strict XML Parser.

A well-formedness enforcing XML 1.0 parser that turns text into a tree of
typed nodes, or fails with a single precisely located error.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_file()
- Level 2: Configured parser - XmlParser class with ParserConfig
- Level 3: Integration - ElementTree and lxml adapters, serialize()
"""

__version__ = "0.1.0"
__author__ = "Strict XML Parser Team"

from .api import XmlParser, get_adapter, parse, parse_file
from .shared.config import ConfigError, ConfigValidationError, ParserConfig
from .shared.errors import EntityResolverContractError, ErrorCode, XmlError
from .tree.nodes import (
    NodeType,
    XmlCdata,
    XmlComment,
    XmlDeclaration,
    XmlDocument,
    XmlDocumentType,
    XmlElement,
    XmlNode,
    XmlProcessingInstruction,
    XmlText,
)
from .tree.serializer import serialize

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_file",

    # Level 2: Configured parser
    "XmlParser",
    "ParserConfig",

    # Level 3: Integration
    "get_adapter",
    "serialize",

    # Document tree
    "NodeType",
    "XmlNode",
    "XmlDocument",
    "XmlElement",
    "XmlText",
    "XmlCdata",
    "XmlComment",
    "XmlProcessingInstruction",
    "XmlDocumentType",
    "XmlDeclaration",

    # Errors
    "XmlError",
    "ErrorCode",
    "EntityResolverContractError",
    "ConfigError",
    "ConfigValidationError",
]
