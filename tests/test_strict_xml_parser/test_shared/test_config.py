"""Tests for parser configuration."""

import json

import pytest

from strict_xml_parser.shared.config import (
    PRESETS,
    ConfigError,
    ConfigValidationError,
    ParserConfig,
)


class TestParserConfig:
    """Test construction and validation."""

    def test_defaults(self):
        config = ParserConfig()
        assert not config.ignore_undefined_entities
        assert config.resolve_undefined_entity is None
        assert not config.preserve_cdata
        assert not config.preserve_comments
        assert not config.preserve_document_type
        assert not config.preserve_xml_declaration
        assert not config.sort_attributes
        assert not config.include_offsets
        assert config.offset_encoding == "utf-16"
        assert config.correlation_id is None

    def test_immutable(self):
        config = ParserConfig()
        with pytest.raises(AttributeError):
            config.preserve_comments = True

    def test_flag_type_checked(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(preserve_comments="yes")
        assert exc_info.value.field_name == "preserve_comments"
        assert str(exc_info.value) == "preserve_comments must be a bool"

    def test_hook_must_be_callable(self):
        with pytest.raises(ConfigValidationError, match="callable"):
            ParserConfig(resolve_undefined_entity="&nbsp;")

    def test_offset_encoding_checked(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(offset_encoding="latin-1")
        assert exc_info.value.suggestions == ["utf-16", "utf-8", "codepoint"]

    def test_correlation_id_type(self):
        with pytest.raises(ConfigValidationError):
            ParserConfig(correlation_id=42)


class TestOverride:
    """Test deriving configurations."""

    def test_override(self):
        base = ParserConfig()
        derived = base.override(preserve_comments=True, offset_encoding="utf-8")
        assert derived.preserve_comments
        assert derived.offset_encoding == "utf-8"
        assert not base.preserve_comments

    def test_override_validates(self):
        with pytest.raises(ConfigValidationError):
            ParserConfig().override(include_offsets=1)

    def test_unknown_option(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig().override(preserve_everything=True)
        assert str(exc_info.value) == "Unknown configuration option: preserve_everything"
        assert "preserve_comments" in exc_info.value.suggestions


class TestPresets:
    """Test preset factories."""

    def test_strict(self):
        assert ParserConfig.strict() == ParserConfig()

    def test_lenient(self):
        assert ParserConfig.lenient().ignore_undefined_entities

    def test_lossless(self):
        config = ParserConfig.lossless()
        assert config.preserve_cdata
        assert config.preserve_comments
        assert config.preserve_document_type
        assert config.preserve_xml_declaration
        assert config.include_offsets
        assert not config.ignore_undefined_entities

    def test_registry(self):
        assert sorted(PRESETS) == ["lenient", "lossless", "strict"]
        assert PRESETS["lenient"]() == ParserConfig.lenient()


class TestSerialization:
    """Test dictionary and JSON conversion."""

    def test_to_dict(self):
        data = ParserConfig(correlation_id="req-1").to_dict()
        assert data["correlation_id"] == "req-1"
        assert data["resolve_undefined_entity"] is False
        assert ParserConfig(resolve_undefined_entity=str.upper).to_dict()[
            "resolve_undefined_entity"
        ] is True

    def test_json_restores_equal_config(self):
        config = ParserConfig.lossless().override(offset_encoding="codepoint")
        assert ParserConfig.from_json(config.to_json()) == config
        assert json.loads(config.to_json())["offset_encoding"] == "codepoint"

    def test_from_dict_rejects_installed_hook(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig.from_dict({"resolve_undefined_entity": True})
        assert exc_info.value.field_name == "resolve_undefined_entity"

    def test_from_dict_accepts_callable_hook(self):
        config = ParserConfig.from_dict({"resolve_undefined_entity": str.upper})
        assert config.resolve_undefined_entity is str.upper

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigValidationError, match="Unknown configuration option: bogus"):
            ParserConfig.from_dict({"bogus": 1})

    def test_from_json_invalid(self):
        with pytest.raises(ConfigError, match="Invalid configuration JSON"):
            ParserConfig.from_json("{not json")

    def test_from_json_not_an_object(self):
        with pytest.raises(ConfigValidationError, match="must be an object"):
            ParserConfig.from_json("[1, 2]")
