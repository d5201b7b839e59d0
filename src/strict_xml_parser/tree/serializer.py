"""Render document trees back to XML text.

Parsing the output with the options that produced the tree yields a tree
equal to the original, offsets aside. Original quoting style and the choice
between literal characters and references are not retained.
"""

from typing import Iterator, List, Optional, Union

from .nodes import (
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

DEFAULT_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_TEXT_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\r": "&#13;",
})

# Tab, LF and CR would be normalised to spaces when read back.
_ATTRIBUTE_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    '"': "&quot;",
    "\t": "&#9;",
    "\n": "&#10;",
    "\r": "&#13;",
})


def escape_text(text: str) -> str:
    """Escape character data for element content."""
    return text.translate(_TEXT_ESCAPES)


def escape_attribute(value: str) -> str:
    """Escape an attribute value for use inside double quotes."""
    return value.translate(_ATTRIBUTE_ESCAPES)


def _quote_literal(value: str) -> str:
    quote = "'" if '"' in value else '"'
    return f"{quote}{value}{quote}"


def _start_tag(element: XmlElement) -> str:
    parts = [element.name]
    for name, value in element.attributes.items():
        parts.append(f'{name}="{escape_attribute(value)}"')
    return "<" + " ".join(parts)


def _render_leaf(node: XmlNode) -> str:
    if isinstance(node, XmlText):
        return escape_text(node.text)
    if isinstance(node, XmlCdata):
        return "<![CDATA[" + node.text.replace("]]>", "]]]]><![CDATA[>") + "]]>"
    if isinstance(node, XmlComment):
        # A trailing hyphen would fuse with the closing delimiter; content is
        # trimmed on parse, so the padding space does not survive a re-parse.
        if node.content.endswith("-"):
            return f"<!--{node.content} -->"
        return f"<!--{node.content}-->"
    if isinstance(node, XmlProcessingInstruction):
        if node.content:
            return f"<?{node.name} {node.content}?>"
        return f"<?{node.name}?>"
    if isinstance(node, XmlDocumentType):
        parts = [f"<!DOCTYPE {node.name}"]
        if node.public_id is not None:
            parts.append(f" PUBLIC {_quote_literal(node.public_id)} {_quote_literal(node.system_id or '')}")
        elif node.system_id is not None:
            parts.append(f" SYSTEM {_quote_literal(node.system_id)}")
        if node.internal_subset is not None:
            parts.append(f" [{node.internal_subset}]")
        parts.append(">")
        return "".join(parts)
    if isinstance(node, XmlDeclaration):
        parts = [f'<?xml version="{node.version}"']
        if node.encoding is not None:
            parts.append(f' encoding="{node.encoding}"')
        if node.standalone is not None:
            parts.append(f' standalone="{node.standalone}"')
        parts.append("?>")
        return "".join(parts)
    raise TypeError(f"Cannot serialize {type(node).__name__}")


def iter_serialized(node: XmlNode) -> Iterator[str]:
    """Yield the XML text of ``node`` in pieces, walking the tree without recursion."""
    # Stack items are nodes still to render, or closing tags to emit.
    stack: List[Union[XmlNode, str]] = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            yield item
        elif isinstance(item, XmlDocument):
            stack.extend(reversed(item.children))
        elif isinstance(item, XmlElement):
            if not item.children:
                yield _start_tag(item) + "/>"
                continue
            yield _start_tag(item) + ">"
            stack.append(f"</{item.name}>")
            stack.extend(reversed(item.children))
        else:
            yield _render_leaf(item)


def serialize(node: XmlNode, xml_declaration: bool = False) -> str:
    """Serialize a node and its descendants to XML text.

    Args:
        node: Any node; documents render all of their children
        xml_declaration: Prepend a UTF-8 XML declaration when the document
            does not carry one of its own

    Returns:
        XML text

    Examples:
        >>> from strict_xml_parser import parse
        >>> serialize(parse('<a b="1">x &amp; y</a>'))
        '<a b="1">x &amp; y</a>'
    """
    text = "".join(iter_serialized(node))
    if xml_declaration and not _has_declaration(node):
        text = DEFAULT_DECLARATION + text
    return text


def _has_declaration(node: XmlNode) -> bool:
    declaration: Optional[XmlNode] = None
    if isinstance(node, XmlDocument):
        declaration = next((c for c in node.children if isinstance(c, XmlDeclaration)), None)
    return declaration is not None or isinstance(node, XmlDeclaration)
