"""Public parsing API and library adapters."""

from .adapters import (
    AdapterMetadata,
    AdapterUnavailableError,
    BeautifulSoupAdapter,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import XmlParser, parse, parse_file

__all__ = [
    "parse",
    "parse_file",
    "XmlParser",
    "AdapterMetadata",
    "AdapterUnavailableError",
    "IntegrationAdapter",
    "ElementTreeAdapter",
    "LxmlAdapter",
    "BeautifulSoupAdapter",
    "PandasAdapter",
    "get_adapter",
    "list_available_adapters",
    "register_adapter",
]
