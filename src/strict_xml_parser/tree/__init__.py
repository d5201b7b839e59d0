"""Document tree node types and serialization."""

from .nodes import (
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
from .serializer import escape_attribute, escape_text, serialize

__all__ = [
    "NodeType",
    "XmlCdata",
    "XmlComment",
    "XmlDeclaration",
    "XmlDocument",
    "XmlDocumentType",
    "XmlElement",
    "XmlNode",
    "XmlProcessingInstruction",
    "XmlText",
    "escape_attribute",
    "escape_text",
    "serialize",
]
