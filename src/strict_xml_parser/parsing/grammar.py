"""Recursive-descent grammar engine for well-formed XML 1.0 documents.

The engine walks the prolog, the single root element and any trailing
miscellaneous content, building an :class:`XmlDocument` as it goes. The first
well-formedness violation raises an :class:`XmlError`; there is no recovery
and no partial result.

Element nesting is tracked with an explicit stack of open elements, so the
depth of a document is not limited by the interpreter's recursion limit.
"""

import logging
import re
from bisect import bisect_left
from enum import Enum, auto
from typing import List, Optional, Tuple

from ..character.classes import NAME_PATTERN, find_invalid_char, is_name_char, is_reference_char
from ..character.scanner import StringScanner
from ..shared.config import ParserConfig
from ..shared.errors import ErrorCode, XmlError
from ..shared.logging import get_logger
from ..tree.nodes import (
    XmlCdata,
    XmlComment,
    XmlDeclaration,
    XmlDocument,
    XmlDocumentType,
    XmlElement,
    XmlNode,
    XmlParent,
    XmlProcessingInstruction,
    XmlText,
)
from .entities import EntityResolver, ReferenceResolutionError

_LINE_ENDINGS = re.compile(r"\r\n?")
_CRLF = re.compile(r"\r\n")
_WHITESPACE = re.compile(r"[\x20\t\r\n]+")
_EQ = re.compile(r"[\x20\t\r\n]*=[\x20\t\r\n]*")
# Maximal run of character data: anything but '<', '&' and the sequence ']]>'.
_CHAR_DATA = re.compile(r"(?:[^<&\]]+|\](?!\]>))+")
_ATTRIBUTE_VALUE_RUNS = {
    '"': re.compile(r'[^"&<]+'),
    "'": re.compile(r"[^'&<]+"),
}
_ATTRIBUTE_WHITESPACE = str.maketrans("\t\n\r", "   ")
_INTERNAL_SUBSET_END = re.compile(r"\][\x20\t\r\n]*>")
_PUBID_LITERAL = re.compile(r"[-\x20\r\na-zA-Z0-9'()+,./:=?;!*#@$_%]*")
_VERSION_NUMBER = re.compile(r"1\.[0-9]+")
_ENCODING_NAME = re.compile(r"[A-Za-z][A-Za-z0-9._-]*")

BYTE_ORDER_MARK = "\ufeff"


class ParserState(Enum):
    """Top-level position of the grammar engine within the document."""

    PROLOG = auto()        # Declaration, doctype, leading misc
    ROOT_ELEMENT = auto()  # Inside the single root element
    TRAILING = auto()      # Misc after the root element
    DONE = auto()          # Whole input consumed
    FAILED = auto()        # An error has been raised


def normalize_line_endings(text: str) -> str:
    """Translate CRLF and lone CR into LF."""
    if "\r" not in text:
        return text
    return _LINE_ENDINGS.sub("\n", text)


def collapsed_line_breaks(text: str) -> List[int]:
    """Indices in the normalised text of each LF that replaced a CRLF pair.

    A lone CR becomes a single LF and keeps its length, so only CRLF pairs
    shift later positions. The result is sorted.
    """
    positions: List[int] = []
    for match in _CRLF.finditer(text):
        positions.append(match.start() - len(positions))
    return positions


class XmlGrammarParser:
    """Single-use parser for one input text.

    Args:
        text: Document text
        config: Parser options, defaults to :class:`ParserConfig`
    """

    def __init__(self, text: str, config: Optional[ParserConfig] = None) -> None:
        self.config = config or ParserConfig()
        self.text = normalize_line_endings(text)
        self._collapsed_breaks = collapsed_line_breaks(text)
        self.scanner = StringScanner(self.text, self.config.offset_encoding)
        self.entities = EntityResolver(
            ignore_undefined_entities=self.config.ignore_undefined_entities,
            resolve_undefined_entity=self.config.resolve_undefined_entity,
        )
        self.document = XmlDocument()
        self.state = ParserState.PROLOG
        self.logger = get_logger(__name__, self.config.correlation_id, "grammar")

        # Character data collected for the innermost open element, merged into
        # a single text node once something else is appended after it.
        self._pending_text: List[str] = []
        self._pending_start = 0
        self._pending_end = 0

    def parse(self) -> XmlDocument:
        """Parse the whole input.

        Returns:
            The parsed document

        Raises:
            XmlError: On the first well-formedness violation
            EntityResolverContractError: If the undefined-entity hook misbehaves
        """
        if self.state is not ParserState.PROLOG or self.scanner.char_index:
            raise RuntimeError("XmlGrammarParser instances can only parse once")

        scanner = self.scanner
        scanner.consume_string(BYTE_ORDER_MARK)
        self._consume_prolog()

        self._transition(ParserState.ROOT_ELEMENT)
        if not self._consume_element():
            raise self._error("Root element is missing or invalid", ErrorCode.ROOT_ELEMENT_MISSING)

        self._transition(ParserState.TRAILING)
        self._consume_misc()
        if not scanner.is_end:
            raise self._error("Extra content at the end of the document", ErrorCode.EXTRA_CONTENT)

        self._transition(ParserState.DONE)
        self.document.start = self._offset(0)
        self.document.end = self._offset(scanner.char_count)
        return self.document

    # -- helpers -------------------------------------------------------------

    def _transition(self, state: ParserState) -> None:
        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Grammar state transition",
                extra={
                    "from_state": self.state.name,
                    "to_state": state.name,
                    "char_index": self.scanner.char_index,
                },
            )
        self.state = state

    def _error(self, description: str, code: ErrorCode, index: Optional[int] = None) -> XmlError:
        if index is None:
            index = self.scanner.char_index
        self._transition(ParserState.FAILED)
        return XmlError(description, code, self.text, index, self._source_index(index))

    def _source_index(self, index: int) -> int:
        """Map an index into the normalised text back to the caller's input."""
        return index + bisect_left(self._collapsed_breaks, index)

    def _offset(self, index: int) -> int:
        if not self.config.include_offsets:
            return -1
        # A removed CR is one unit in every storage encoding.
        offset = self.scanner.char_index_to_storage_offset(index)
        return offset + bisect_left(self._collapsed_breaks, index)

    def _check_chars(self, segment: str, start: int) -> None:
        invalid = find_invalid_char(segment)
        if invalid is not None:
            raise self._error("Invalid character", ErrorCode.INVALID_CHARACTER, start + invalid)

    def _consume_whitespace(self) -> bool:
        return bool(self.scanner.consume_match(_WHITESPACE))

    def _consume_quoted(self) -> Optional[str]:
        """Consume a quoted literal with no markup, or return None if no quote is present."""
        scanner = self.scanner
        quote = scanner.peek()
        if quote not in ('"', "'"):
            return None
        scanner.advance()
        start = scanner.char_index
        value = scanner.consume_until_string(quote)
        if not scanner.consume_string(quote):
            raise self._error("Missing end quote", ErrorCode.MISSING_END_QUOTE)
        self._check_chars(value, start)
        return value

    def _append_node(self, parent: XmlParent, node: XmlNode) -> None:
        self._flush_text(parent)
        parent.append_child(node)

    def _add_text(self, text: str, start: int, end: int) -> None:
        if not self._pending_text:
            self._pending_start = start
        self._pending_text.append(text)
        self._pending_end = end

    def _flush_text(self, parent: XmlParent) -> None:
        if not self._pending_text:
            return
        text = "".join(self._pending_text)
        self._pending_text = []
        if text:
            parent.append_child(XmlText(
                text,
                start=self._offset(self._pending_start),
                end=self._offset(self._pending_end),
            ))

    # -- prolog and misc -----------------------------------------------------

    def _consume_prolog(self) -> None:
        self._consume_xml_declaration()
        self._consume_misc()
        if self._consume_doctype_declaration():
            self._consume_misc()

    def _consume_misc(self) -> None:
        parent = self.document
        while (
            self._consume_comment(parent)
            or self._consume_processing_instruction(parent)
            or self._consume_whitespace()
        ):
            pass

    def _consume_xml_declaration(self) -> bool:
        scanner = self.scanner
        start = scanner.char_index
        if not scanner.consume_string("<?xml"):
            return False
        # '<?xml-stylesheet' and friends are processing instructions.
        if is_name_char(scanner.peek()):
            scanner.reset(start)
            return False

        version = None
        if self._consume_whitespace():
            version = self._consume_declaration_attribute("version")
        if version is None:
            raise self._error("XML version is missing or invalid", ErrorCode.INVALID_XML_DECLARATION)
        if not _VERSION_NUMBER.fullmatch(version):
            raise self._error("Invalid character in version number", ErrorCode.INVALID_XML_DECLARATION)

        encoding = None
        mark = scanner.char_index
        if self._consume_whitespace():
            encoding = self._consume_declaration_attribute("encoding")
        if encoding is None:
            scanner.reset(mark)
        elif not _ENCODING_NAME.fullmatch(encoding):
            raise self._error("Invalid character in encoding name", ErrorCode.INVALID_XML_DECLARATION)

        standalone = None
        mark = scanner.char_index
        if self._consume_whitespace():
            standalone = self._consume_declaration_attribute("standalone")
        if standalone is None:
            scanner.reset(mark)
        elif standalone not in ("yes", "no"):
            raise self._error(
                'Only "yes" and "no" are permitted as values of `standalone`',
                ErrorCode.INVALID_XML_DECLARATION,
            )

        self._consume_whitespace()
        if not scanner.consume_string("?>"):
            raise self._error("Invalid or unclosed XML declaration", ErrorCode.INVALID_XML_DECLARATION)

        if self.config.preserve_xml_declaration:
            self._append_node(self.document, XmlDeclaration(
                version=version,
                encoding=encoding,
                standalone=standalone,
                start=self._offset(start),
                end=self._offset(scanner.char_index),
            ))
        return True

    def _consume_declaration_attribute(self, name: str) -> Optional[str]:
        scanner = self.scanner
        if not scanner.consume_string(name):
            return None
        if not scanner.consume_match(_EQ):
            raise self._error("Invalid XML declaration", ErrorCode.INVALID_XML_DECLARATION)
        value = self._consume_quoted()
        if value is None:
            raise self._error("Invalid XML declaration", ErrorCode.INVALID_XML_DECLARATION)
        return value

    def _consume_doctype_declaration(self) -> bool:
        scanner = self.scanner
        start = scanner.char_index
        if not scanner.consume_string("<!DOCTYPE"):
            return False

        name = ""
        if self._consume_whitespace():
            name = scanner.consume_match(NAME_PATTERN)
        if not name:
            raise self._error("Expected a name", ErrorCode.MISSING_DOCTYPE_NAME)

        public_id = system_id = internal_subset = None
        mark = scanner.char_index
        if self._consume_whitespace():
            if scanner.consume_string("PUBLIC"):
                public_id = self._consume_external_id_literal("Expected a public identifier")
                if not _PUBID_LITERAL.fullmatch(public_id):
                    raise self._error(
                        "Invalid character in public identifier",
                        ErrorCode.INVALID_PUBLIC_IDENTIFIER_CHARACTER,
                    )
                system_id = self._consume_external_id_literal("Expected a system identifier")
            elif scanner.consume_string("SYSTEM"):
                system_id = self._consume_external_id_literal("Expected a system identifier")
            else:
                scanner.reset(mark)

        self._consume_whitespace()
        if scanner.consume_string("["):
            subset_start = scanner.char_index
            internal_subset = scanner.consume_until_match(_INTERNAL_SUBSET_END)
            if not scanner.consume_string("]"):
                raise self._error("Unclosed internal subset", ErrorCode.UNCLOSED_INTERNAL_SUBSET)
            self._check_chars(internal_subset, subset_start)
            self._consume_whitespace()

        if not scanner.consume_string(">"):
            raise self._error("Unclosed doctype declaration", ErrorCode.UNCLOSED_DOCTYPE)

        if self.config.preserve_document_type:
            self._append_node(self.document, XmlDocumentType(
                name=name,
                public_id=public_id,
                system_id=system_id,
                internal_subset=internal_subset,
                start=self._offset(start),
                end=self._offset(scanner.char_index),
            ))
        return True

    def _consume_external_id_literal(self, description: str) -> str:
        value = None
        if self._consume_whitespace():
            value = self._consume_quoted()
        if value is None:
            raise self._error(description, ErrorCode.MISSING_PUBLIC_OR_SYSTEM_IDENTIFIER)
        return value

    # -- markup shared by prolog and content ---------------------------------

    def _consume_comment(self, parent: XmlParent) -> bool:
        scanner = self.scanner
        start = scanner.char_index
        if not scanner.consume_string("<!--"):
            return False

        content_start = scanner.char_index
        content = scanner.consume_until_string("--")
        if not scanner.consume_string("-->"):
            if scanner.peek(2) == "--":
                raise self._error(
                    "The string `--` isn't allowed inside a comment",
                    ErrorCode.FORBIDDEN_DOUBLE_HYPHEN_IN_COMMENT,
                )
            raise self._error("Unclosed comment", ErrorCode.UNCLOSED_COMMENT)
        self._check_chars(content, content_start)

        if self.config.preserve_comments:
            self._append_node(parent, XmlComment(
                content.strip(),
                start=self._offset(start),
                end=self._offset(scanner.char_index),
            ))
        return True

    def _consume_processing_instruction(self, parent: XmlParent) -> bool:
        scanner = self.scanner
        start = scanner.char_index
        if not scanner.consume_string("<?"):
            return False

        name = scanner.consume_match(NAME_PATTERN)
        if not name:
            raise self._error("Invalid processing instruction", ErrorCode.INVALID_PROCESSING_INSTRUCTION)
        if name.lower() == "xml":
            scanner.reset(start)
            raise self._error("XML declaration isn't allowed here", ErrorCode.XML_DECLARATION_NOT_ALLOWED)

        content = ""
        if not scanner.consume_string("?>"):
            if not self._consume_whitespace():
                raise self._error(
                    "Whitespace is required after a processing instruction name",
                    ErrorCode.INVALID_PROCESSING_INSTRUCTION,
                )
            content_start = scanner.char_index
            content = scanner.consume_until_string("?>")
            if not scanner.consume_string("?>"):
                raise self._error(
                    "Unterminated processing instruction",
                    ErrorCode.UNCLOSED_PROCESSING_INSTRUCTION,
                )
            self._check_chars(content, content_start)

        self._append_node(parent, XmlProcessingInstruction(
            name,
            content,
            start=self._offset(start),
            end=self._offset(scanner.char_index),
        ))
        return True

    def _consume_reference(self) -> Optional[str]:
        """Consume ``&...;`` and return its replacement text, or None if absent."""
        scanner = self.scanner
        if not scanner.consume_string("&"):
            return None
        body = scanner.consume_match_fn(is_reference_char)
        if not scanner.consume_string(";"):
            raise self._error(
                "Unterminated reference (a reference must end with `;`)",
                ErrorCode.UNTERMINATED_REFERENCE,
            )
        try:
            return self.entities.resolve(body)
        except ReferenceResolutionError as e:
            scanner.reset(-e.rewind)
            raise self._error(e.description, e.code) from e

    # -- elements ------------------------------------------------------------

    def _consume_element(self) -> bool:
        """Consume the root element and everything nested in it."""
        opened = self._consume_start_tag(self.document)
        if opened is None:
            return False
        element, is_closed = opened
        if is_closed:
            return True

        scanner = self.scanner
        stack = [element]
        while stack:
            current = stack[-1]
            self._consume_char_data()

            if scanner.peek(2) == "</":
                self._flush_text(current)
                self._consume_end_tag(current)
                stack.pop()
                continue

            opened = self._consume_start_tag(current)
            if opened is not None:
                child, is_closed = opened
                if not is_closed:
                    stack.append(child)
                continue

            text_start = scanner.char_index
            replacement = self._consume_reference()
            if replacement is not None:
                self._add_text(replacement, text_start, scanner.char_index)
                continue

            if (
                self._consume_cdata(current)
                or self._consume_processing_instruction(current)
                or self._consume_comment(current)
            ):
                continue

            raise self._error(
                f"Missing end tag for element {current.name}", ErrorCode.MISSING_END_TAG
            )
        return True

    def _consume_start_tag(self, parent: XmlParent) -> Optional[Tuple[XmlElement, bool]]:
        """Consume a start or empty-element tag.

        Returns:
            The new element and whether it was self-closing, or None when the
            text at the cursor is not a start tag (the cursor is restored)
        """
        scanner = self.scanner
        start = scanner.char_index
        if not scanner.consume_string("<"):
            return None
        name = scanner.consume_match(NAME_PATTERN)
        if not name:
            scanner.reset(start)
            return None

        attributes = {}
        while True:
            mark = scanner.char_index
            if not self._consume_whitespace():
                break
            attribute_start = scanner.char_index
            attribute_name = scanner.consume_match(NAME_PATTERN)
            if not attribute_name:
                scanner.reset(mark)
                break

            value = None
            if scanner.consume_match(_EQ):
                value = self._consume_attribute_value()
            if value is None:
                raise self._error("Attribute value expected", ErrorCode.ATTRIBUTE_VALUE_EXPECTED)
            if attribute_name in attributes:
                raise self._error(
                    f"Duplicate attribute: {attribute_name}",
                    ErrorCode.DUPLICATE_ATTRIBUTE,
                    attribute_start,
                )
            if attribute_name == "xml:space" and value not in ("default", "preserve"):
                raise self._error(
                    'Value of the `xml:space` attribute must be "default" or "preserve"',
                    ErrorCode.INVALID_XML_SPACE,
                    attribute_start,
                )
            attributes[attribute_name] = value

        self._consume_whitespace()
        if self.config.sort_attributes:
            attributes = dict(sorted(attributes.items()))

        element = XmlElement(name, attributes, start=self._offset(start))
        self._append_node(parent, element)

        if scanner.consume_string("/>"):
            element.end = self._offset(scanner.char_index)
            return element, True
        if scanner.consume_string(">"):
            return element, False
        raise self._error(f"Unclosed start tag for element `{name}`", ErrorCode.UNCLOSED_START_TAG)

    def _consume_end_tag(self, element: XmlElement) -> None:
        scanner = self.scanner
        mark = scanner.char_index
        scanner.consume_string("</")
        name = scanner.consume_match(NAME_PATTERN)
        if name != element.name:
            scanner.reset(mark)
            raise self._error(
                f"Missing end tag for element {element.name}", ErrorCode.MISSING_END_TAG
            )
        self._consume_whitespace()
        if not scanner.consume_string(">"):
            raise self._error(f"Unclosed end tag for element {name}", ErrorCode.UNCLOSED_END_TAG)
        element.end = self._offset(scanner.char_index)

    def _consume_attribute_value(self) -> Optional[str]:
        scanner = self.scanner
        quote = scanner.peek()
        if quote not in _ATTRIBUTE_VALUE_RUNS:
            return None
        scanner.advance()
        value_run = _ATTRIBUTE_VALUE_RUNS[quote]

        parts = []
        while True:
            run_start = scanner.char_index
            run = scanner.consume_match(value_run)
            if run:
                self._check_chars(run, run_start)
                parts.append(run.translate(_ATTRIBUTE_WHITESPACE))

            char = scanner.peek()
            if char == quote:
                scanner.advance()
                return "".join(parts)
            if char == "&":
                # Replacement text is not subject to whitespace normalisation.
                parts.append(self._consume_reference())
            elif char == "<":
                raise self._error(
                    "Unescaped `<` is not allowed in an attribute value",
                    ErrorCode.UNESCAPED_LT_IN_ATTRIBUTE,
                )
            else:
                raise self._error("Unclosed attribute", ErrorCode.UNCLOSED_ATTRIBUTE)

    # -- content -------------------------------------------------------------

    def _consume_char_data(self) -> None:
        scanner = self.scanner
        start = scanner.char_index
        text = scanner.consume_match(_CHAR_DATA)
        if text:
            self._check_chars(text, start)
            self._add_text(text, start, scanner.char_index)
        if scanner.peek(3) == "]]>":
            raise self._error(
                "Element content may not contain the CDATA section close delimiter `]]>`",
                ErrorCode.CDATA_CLOSE_IN_CONTENT,
            )

    def _consume_cdata(self, parent: XmlElement) -> bool:
        scanner = self.scanner
        start = scanner.char_index
        if not scanner.consume_string("<![CDATA["):
            return False

        text_start = scanner.char_index
        text = scanner.consume_until_string("]]>")
        if not scanner.consume_string("]]>"):
            raise self._error("Unclosed CDATA section", ErrorCode.UNCLOSED_CDATA)
        self._check_chars(text, text_start)

        if self.config.preserve_cdata:
            self._append_node(parent, XmlCdata(
                text,
                start=self._offset(start),
                end=self._offset(scanner.char_index),
            ))
        else:
            self._add_text(text, start, scanner.char_index)
        return True
