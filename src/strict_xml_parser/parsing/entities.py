"""Resolution of entity and character references.

The resolver works on the body of a reference, the text between ``&`` and
``;``. Failures are reported as :class:`ReferenceResolutionError`; the
grammar engine turns those into positioned :class:`XmlError` instances.
"""

import re
from typing import Optional

from ..character.classes import PREDEFINED_ENTITIES, is_xml_code_point
from ..shared.config import UndefinedEntityResolver
from ..shared.errors import EntityResolverContractError, ErrorCode

_DECIMAL_REFERENCE = re.compile(r"#([0-9]+)")
_HEX_REFERENCE = re.compile(r"#x([0-9a-fA-F]+)")

_MAX_CODE_POINT = 0x10FFFF


class ReferenceResolutionError(Exception):
    """A reference that cannot be resolved.

    Attributes:
        code: Error code to report
        description: Human readable description
        rewind: Characters to move back from the end of the reference before
            reporting, so the error points at its start when relevant
    """

    def __init__(self, code: ErrorCode, description: str, rewind: int = 0) -> None:
        super().__init__(description)
        self.code = code
        self.description = description
        self.rewind = rewind


class EntityResolver:
    """Resolves predefined entities, character references and caller hooks."""

    def __init__(
        self,
        ignore_undefined_entities: bool = False,
        resolve_undefined_entity: Optional[UndefinedEntityResolver] = None,
    ) -> None:
        self.ignore_undefined_entities = ignore_undefined_entities
        self.resolve_undefined_entity = resolve_undefined_entity

    def resolve(self, body: str) -> str:
        """Return the replacement text for the reference ``&body;``.

        Raises:
            ReferenceResolutionError: On malformed or undefined references
            EntityResolverContractError: If the caller hook returns a value that
                is neither a str nor None
        """
        if body.startswith("#"):
            return self.resolve_character_reference(body)
        return self.resolve_entity(body)

    def resolve_character_reference(self, body: str) -> str:
        match = _HEX_REFERENCE.fullmatch(body)
        if match:
            code_point = int(match.group(1), 16)
        else:
            match = _DECIMAL_REFERENCE.fullmatch(body)
            if not match:
                raise ReferenceResolutionError(
                    ErrorCode.INVALID_CHARACTER_REFERENCE, "Invalid character reference",
                    rewind=len(body) + 2,
                )
            digits = match.group(1).lstrip("0") or "0"
            # Longer runs are out of range; int() also caps decimal digit counts.
            code_point = int(digits) if len(digits) <= 7 else _MAX_CODE_POINT + 1

        if code_point > _MAX_CODE_POINT or not is_xml_code_point(code_point):
            raise ReferenceResolutionError(
                ErrorCode.INVALID_CHARACTER_REFERENCE,
                "Character reference resolves to an invalid character",
                rewind=len(body) + 2,
            )
        return chr(code_point)

    def resolve_entity(self, name: str) -> str:
        predefined = PREDEFINED_ENTITIES.get(name)
        if predefined is not None:
            return predefined

        reference = f"&{name};"
        if self.resolve_undefined_entity is not None:
            replacement = self.resolve_undefined_entity(reference)
            if isinstance(replacement, str):
                return replacement
            if replacement is not None:
                raise EntityResolverContractError(
                    "resolve_undefined_entity() must return a str or None, "
                    f"but returned a value of type {type(replacement).__name__}"
                )

        if self.ignore_undefined_entities:
            return reference

        raise ReferenceResolutionError(
            ErrorCode.UNDEFINED_ENTITY,
            f"Named entity isn't defined: {reference}",
            rewind=len(reference),
        )
