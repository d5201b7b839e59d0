"""Configuration for strict XML parsing.

:class:`ParserConfig` is an immutable bundle of the options accepted by
:func:`strict_xml_parser.parse`. Instances are validated on construction and
are safe to share between threads.
"""

import json
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Optional

from ..character.scanner import STORAGE_ENCODINGS

UndefinedEntityResolver = Callable[[str], Optional[str]]


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


_FLAG_FIELDS = (
    "ignore_undefined_entities",
    "preserve_cdata",
    "preserve_comments",
    "preserve_document_type",
    "preserve_xml_declaration",
    "sort_attributes",
    "include_offsets",
)


@dataclass(frozen=True)
class ParserConfig:
    """Options controlling what the parser keeps and how it treats entities.

    Attributes:
        ignore_undefined_entities: Keep undefined named references as literal text
        resolve_undefined_entity: Hook called with ``&name;`` for undefined
            entities; returns replacement text or None
        preserve_cdata: Emit CDATA sections as their own nodes instead of text
        preserve_comments: Emit comment nodes
        preserve_document_type: Emit the document type declaration node
        preserve_xml_declaration: Emit the XML declaration node
        sort_attributes: Order attribute names by code point
        include_offsets: Record start/end offsets on every node
        offset_encoding: Unit of recorded offsets ("utf-16", "utf-8" or "codepoint")
        correlation_id: Identifier attached to log records of a parse
    """

    ignore_undefined_entities: bool = False
    resolve_undefined_entity: Optional[UndefinedEntityResolver] = None
    preserve_cdata: bool = False
    preserve_comments: bool = False
    preserve_document_type: bool = False
    preserve_xml_declaration: bool = False
    sort_attributes: bool = False
    include_offsets: bool = False
    offset_encoding: str = "utf-16"
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate option types and values."""
        for name in _FLAG_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigValidationError(
                    f"{name} must be a bool", field_name=name
                )
        if self.resolve_undefined_entity is not None and not callable(
            self.resolve_undefined_entity
        ):
            raise ConfigValidationError(
                "resolve_undefined_entity must be callable or None",
                field_name="resolve_undefined_entity",
            )
        if self.offset_encoding not in STORAGE_ENCODINGS:
            raise ConfigValidationError(
                f"offset_encoding must be one of {', '.join(STORAGE_ENCODINGS)}",
                field_name="offset_encoding",
                suggestions=list(STORAGE_ENCODINGS),
            )
        if self.correlation_id is not None and not isinstance(self.correlation_id, str):
            raise ConfigValidationError(
                "correlation_id must be a str or None", field_name="correlation_id"
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field names and their new values

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig().override(preserve_comments=True)
            >>> config.preserve_comments
            True
        """
        _check_field_names(kwargs)
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format.

        The resolver hook cannot be serialised; it is reported as a boolean
        telling whether one is installed.
        """
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["resolve_undefined_entity"] = self.resolve_undefined_entity is not None
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        A ``resolve_undefined_entity`` entry is accepted only as a callable or
        as a false/None placeholder written by :meth:`to_dict`.

        Raises:
            ConfigValidationError: On unknown keys or invalid values
        """
        _check_field_names(data)
        values = dict(data)
        hook = values.get("resolve_undefined_entity")
        if hook is False:
            values["resolve_undefined_entity"] = None
        elif hook is True:
            raise ConfigValidationError(
                "resolve_undefined_entity cannot be restored from serialised form",
                field_name="resolve_undefined_entity",
                suggestions=["Pass the hook with ParserConfig.override()"],
            )
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "ParserConfig":
        """Default behaviour: undefined entities are errors, optional nodes dropped."""
        return cls()

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Keep undefined entity references as literal text."""
        return cls(ignore_undefined_entities=True)

    @classmethod
    def lossless(cls) -> "ParserConfig":
        """Keep every optional node and record offsets."""
        return cls(
            preserve_cdata=True,
            preserve_comments=True,
            preserve_document_type=True,
            preserve_xml_declaration=True,
            include_offsets=True,
        )


PRESETS: Dict[str, Callable[[], ParserConfig]] = {
    "strict": ParserConfig.strict,
    "lenient": ParserConfig.lenient,
    "lossless": ParserConfig.lossless,
}


def _check_field_names(values: Dict[str, Any]) -> None:
    known = {f.name for f in fields(ParserConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigValidationError(
            f"Unknown configuration option: {unknown[0]}",
            field_name=unknown[0],
            suggestions=sorted(known),
        )
