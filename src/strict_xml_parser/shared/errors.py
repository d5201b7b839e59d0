"""Well-formedness errors and diagnostic positioning.

Every violation is reported as a single :class:`XmlError`. The error carries a
stable :class:`ErrorCode`, the character offset of the failure in the
line-ending-normalised input, and a human readable message with a one-line
excerpt and a caret under the failing column.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

EXCERPT_MAX_LENGTH = 50
EXCERPT_CONTEXT_BEFORE = 20
EXCERPT_CONTEXT_AFTER = 30
EXCERPT_WINDOW_THRESHOLD = 40


class ErrorCode(str, Enum):
    """Stable identifiers for well-formedness violations."""

    ROOT_ELEMENT_MISSING = "RootElementMissing"
    EXTRA_CONTENT = "ExtraContent"
    MISSING_END_TAG = "MissingEndTag"
    UNCLOSED_START_TAG = "UnclosedStartTag"
    UNCLOSED_END_TAG = "UnclosedEndTag"
    DUPLICATE_ATTRIBUTE = "DuplicateAttribute"
    ATTRIBUTE_VALUE_EXPECTED = "AttributeValueExpected"
    INVALID_XML_SPACE = "InvalidXmlSpace"
    UNESCAPED_LT_IN_ATTRIBUTE = "UnescapedLtInAttribute"
    UNCLOSED_ATTRIBUTE = "UnclosedAttribute"
    UNCLOSED_CDATA = "UnclosedCdata"
    UNCLOSED_COMMENT = "UnclosedComment"
    FORBIDDEN_DOUBLE_HYPHEN_IN_COMMENT = "ForbiddenDoubleHyphenInComment"
    CDATA_CLOSE_IN_CONTENT = "CdataCloseInContent"
    INVALID_CHARACTER = "InvalidCharacter"
    INVALID_CHARACTER_REFERENCE = "InvalidCharacterReference"
    UNTERMINATED_REFERENCE = "UnterminatedReference"
    UNDEFINED_ENTITY = "UndefinedEntity"
    INVALID_XML_DECLARATION = "InvalidXmlDeclaration"
    XML_DECLARATION_NOT_ALLOWED = "XmlDeclarationNotAllowed"
    INVALID_PROCESSING_INSTRUCTION = "InvalidProcessingInstruction"
    UNCLOSED_PROCESSING_INSTRUCTION = "UnclosedProcessingInstruction"
    UNCLOSED_DOCTYPE = "UnclosedDoctype"
    MISSING_DOCTYPE_NAME = "MissingDoctypeName"
    MISSING_PUBLIC_OR_SYSTEM_IDENTIFIER = "MissingPublicOrSystemIdentifier"
    INVALID_PUBLIC_IDENTIFIER_CHARACTER = "InvalidPublicIdentifierCharacter"
    MISSING_END_QUOTE = "MissingEndQuote"
    UNCLOSED_INTERNAL_SUBSET = "UnclosedInternalSubset"


@dataclass(frozen=True)
class ErrorLocation:
    """Human oriented position of an offset within a text.

    Attributes:
        line: 1-based line number
        column: 1-based column within the line
        excerpt: The line containing the offset, windowed to at most 50 characters
        excerpt_start: Index within the line where ``excerpt`` begins
    """

    line: int
    column: int
    excerpt: str
    excerpt_start: int = 0

    def __post_init__(self) -> None:
        if self.line < 1:
            raise ValueError("line must be >= 1")
        if self.column < 1:
            raise ValueError("column must be >= 1")
        if self.excerpt_start < 0:
            raise ValueError("excerpt_start must be >= 0")

    @property
    def caret(self) -> str:
        """Caret line pointing at ``column`` below the indented excerpt."""
        return " " * (self.column - self.excerpt_start + 1) + "^"


def locate_error(text: str, offset: int) -> ErrorLocation:
    """Compute line, column and excerpt for ``offset`` within ``text``.

    Lines are separated by LF only; the parser normalises CR and CRLF before
    scanning, so offsets always refer to normalised text.
    """
    offset = max(0, min(offset, len(text)))
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)

    line = text.count("\n", 0, offset) + 1
    column = offset - line_start + 1
    excerpt = text[line_start:line_end]
    excerpt_start = 0

    if len(excerpt) > EXCERPT_MAX_LENGTH:
        if column < EXCERPT_WINDOW_THRESHOLD:
            excerpt = excerpt[:EXCERPT_MAX_LENGTH]
        else:
            excerpt_start = column - EXCERPT_CONTEXT_BEFORE
            excerpt = excerpt[excerpt_start:column + EXCERPT_CONTEXT_AFTER]

    return ErrorLocation(line=line, column=column, excerpt=excerpt,
                         excerpt_start=excerpt_start)


class XmlError(Exception):
    """Raised when the input is not a well-formed XML document.

    ``index`` locates the failure within ``text`` (the normalised input) and
    drives line, column and excerpt. ``offset`` is the same position as a
    character index into the caller's original input, which differs once
    CRLF pairs have been collapsed; it defaults to ``index``.
    """

    def __init__(
        self,
        description: str,
        code: ErrorCode,
        text: str,
        index: int,
        offset: Optional[int] = None
    ) -> None:
        self.description = description
        self.code = code
        self.offset = index if offset is None else offset
        self.location = locate_error(text, index)
        self.message = (
            f"{description} (line {self.location.line}, column {self.location.column})\n"
            f"  {self.location.excerpt}\n"
            f"{self.location.caret}\n"
        )
        super().__init__(self.message)

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column

    @property
    def excerpt(self) -> str:
        return self.location.excerpt

    def to_dict(self) -> Dict[str, Any]:
        """Structured form used by the command line tool."""
        return {
            "code": self.code.value,
            "description": self.description,
            "offset": self.offset,
            "line": self.line,
            "column": self.column,
            "excerpt": self.excerpt,
        }


class EntityResolverContractError(TypeError):
    """Raised when an undefined-entity hook returns something other than str or None."""
