"""Shared configuration, errors and logging used across all layers."""

from .config import ConfigError, ConfigValidationError, ParserConfig
from .errors import (
    EntityResolverContractError,
    ErrorCode,
    ErrorLocation,
    XmlError,
    locate_error,
)
from .logging import CorrelationLogger, elapsed_ms, get_logger

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ParserConfig",
    "EntityResolverContractError",
    "ErrorCode",
    "ErrorLocation",
    "XmlError",
    "locate_error",
    "CorrelationLogger",
    "elapsed_ms",
    "get_logger",
]
