"""Integration adapters for other XML and data libraries.

Adapters convert a parsed :class:`XmlDocument` into the objects of another
library (ElementTree, lxml, BeautifulSoup, pandas) and back. Conversion back
always goes through this package's parser, so foreign data is held to the
same well-formedness rules.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Dict, List, Optional, Tuple, Type

from ..shared.config import ParserConfig
from ..shared.logging import get_logger
from ..tree.nodes import (
    XmlCdata,
    XmlComment,
    XmlDocument,
    XmlElement,
    XmlProcessingInstruction,
    XmlText,
)
from ..tree.serializer import serialize

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class AdapterUnavailableError(RuntimeError):
    """Raised when an adapter's target library is not installed."""


@dataclass(frozen=True)
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    target_library: str
    description: str


def _etree_name(name: str) -> str:
    # The reserved ``xml`` prefix maps to its namespace in Clark notation.
    if name.startswith("xml:"):
        return f"{{{XML_NAMESPACE}}}{name[4:]}"
    return name


def _append_text(target: Any, last_child: Any, text: str) -> None:
    if last_child is None:
        target.text = (target.text or "") + text
    else:
        last_child.tail = (last_child.tail or "") + text


def document_to_etree(document: XmlDocument, etree: ModuleType) -> Any:
    """Build an element tree for ``document``'s root with the given etree module.

    Text and CDATA become ``text``/``tail``; comments and processing
    instructions become the library's comment and PI elements. Nodes outside
    the root element are not carried over.
    """
    root = document.root
    if root is None:
        raise ValueError("Document has no root element")

    def make_element(element: XmlElement) -> Any:
        target = etree.Element(_etree_name(element.name))
        for name, value in element.attributes.items():
            target.set(_etree_name(name), value)
        return target

    target_root = make_element(root)
    # (source element, its converted counterpart)
    stack: List[Tuple[XmlElement, Any]] = [(root, target_root)]
    while stack:
        element, target = stack.pop()
        last_child = None
        for child in element.children:
            if isinstance(child, (XmlText, XmlCdata)):
                _append_text(target, last_child, child.text)
                continue
            if isinstance(child, XmlElement):
                converted = make_element(child)
                stack.append((child, converted))
            elif isinstance(child, XmlComment):
                converted = etree.Comment(child.content)
            elif isinstance(child, XmlProcessingInstruction):
                converted = etree.ProcessingInstruction(child.name, child.content or None)
            else:
                continue
            target.append(converted)
            last_child = converted
    return target_root


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self._logger = get_logger(__name__, self.correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_target(self, document: XmlDocument) -> Any:
        """Convert a parsed document to the target library's representation."""

    @abstractmethod
    def from_target(self, target_data: Any) -> XmlDocument:
        """Convert target library data back into a parsed document.

        Raises:
            TypeError: If ``target_data`` is not of the target library's type
            XmlError: If the converted form is not well-formed
        """

    def _require_library(self) -> None:
        if not self.is_available():
            raise AdapterUnavailableError(
                f"{self.metadata.target_library} is required for the "
                f"{self.metadata.name} adapter"
            )

    def _parse_serialized(self, xml_string: str) -> XmlDocument:
        from .parser import parse

        self._logger.debug(
            "Parsing serialised target data",
            extra={"adapter": self.metadata.name, "xml_length": len(xml_string)},
        )
        return parse(xml_string, self.config.override(correlation_id=self.correlation_id))


class EtreeAdapter(IntegrationAdapter):
    """Base for adapters targeting an ElementTree-compatible API."""

    @abstractmethod
    def _etree(self) -> ModuleType:
        """Import and return the target etree module."""

    def to_target(self, document: XmlDocument) -> Any:
        """Convert a parsed document to the target library's root element."""
        self._require_library()
        converted = document_to_etree(document, self._etree())
        self._logger.debug(
            "Converted document to target library",
            extra={"adapter": self.metadata.name},
        )
        return converted

    def from_target(self, target_data: Any) -> XmlDocument:
        """Serialise a target element (or element tree) and parse it."""
        self._require_library()
        etree = self._etree()
        if hasattr(target_data, "getroot"):
            target_data = target_data.getroot()
        if not hasattr(target_data, "tag"):
            raise TypeError(
                f"Expected an element from {self.metadata.target_library}, "
                f"got {type(target_data).__name__}"
            )
        return self._parse_serialized(etree.tostring(target_data, encoding="unicode"))


class ElementTreeAdapter(EtreeAdapter):
    """Adapter for bidirectional conversion with xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            target_library="xml.etree.ElementTree",
            description="Conversion between XmlDocument and ElementTree elements",
        )

    def is_available(self) -> bool:
        return True

    def _etree(self) -> ModuleType:
        import xml.etree.ElementTree as ET
        return ET


class LxmlAdapter(EtreeAdapter):
    """Adapter for bidirectional conversion with lxml.etree.

    lxml rejects names containing a colon unless the prefix is bound to a
    namespace, so only unprefixed names and the ``xml:`` prefix convert.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            target_library="lxml",
            description="Conversion between XmlDocument and lxml.etree elements",
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def _etree(self) -> ModuleType:
        import lxml.etree as ET
        return ET


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter for conversion to and from BeautifulSoup's XML tree.

    BeautifulSoup's ``xml`` feature is provided by lxml, so both libraries
    must be installed.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="beautifulsoup",
            target_library="beautifulsoup4",
            description="Conversion between XmlDocument and BeautifulSoup",
        )

    def is_available(self) -> bool:
        try:
            from bs4.builder import builder_registry
        except ImportError:
            return False
        return builder_registry.lookup("xml") is not None

    def to_target(self, document: XmlDocument) -> Any:
        """Serialise ``document`` and load it with BeautifulSoup's XML builder."""
        self._require_library()
        from bs4 import BeautifulSoup

        xml_string = serialize(document)
        self._logger.debug(
            "Converted document to target library",
            extra={"adapter": self.metadata.name, "xml_length": len(xml_string)},
        )
        return BeautifulSoup(xml_string, "xml")

    def from_target(self, target_data: Any) -> XmlDocument:
        """Parse the markup of a BeautifulSoup object or tag."""
        self._require_library()
        from bs4.element import Tag

        if not isinstance(target_data, Tag):
            raise TypeError(
                f"Expected a BeautifulSoup object or tag, got {type(target_data).__name__}"
            )
        return self._parse_serialized(str(target_data))


ATTRIBUTE_COLUMN_PREFIX = "attr_"


def _element_rows(root: XmlElement) -> List[Dict[str, Any]]:
    """One row per element in document order.

    Paths are written as ``/root/child[n]`` where ``n`` counts same-named
    siblings from 1.
    """
    rows = []
    stack: List[Tuple[XmlElement, str]] = [(root, f"/{root.name}")]
    while stack:
        element, path = stack.pop()
        row: Dict[str, Any] = {
            "path": path,
            "name": element.name,
            "text": "".join(
                child.text for child in element.children
                if isinstance(child, (XmlText, XmlCdata))
            ),
        }
        for name, value in element.attributes.items():
            row[ATTRIBUTE_COLUMN_PREFIX + name] = value
        rows.append(row)

        positions: Dict[str, int] = {}
        children = []
        for child in element.children:
            if isinstance(child, XmlElement):
                positions[child.name] = positions.get(child.name, 0) + 1
                children.append((child, f"{path}/{child.name}[{positions[child.name]}]"))
        stack.extend(reversed(children))
    return rows


class PandasAdapter(IntegrationAdapter):
    """Adapter for conversion to and from a flat pandas DataFrame.

    Each element becomes one row with ``path``, ``name`` and ``text`` columns
    plus one ``attr_<name>`` column per attribute name. ``text`` holds the
    element's own character data; converting back places it before any child
    elements.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            target_library="pandas",
            description="Conversion between XmlDocument and pandas DataFrame",
        )

    def is_available(self) -> bool:
        try:
            import pandas  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, document: XmlDocument) -> Any:
        self._require_library()
        import pandas as pd

        if document.root is None:
            raise ValueError("Document has no root element")
        df = pd.DataFrame(_element_rows(document.root))
        self._logger.debug(
            "Converted document to target library",
            extra={"adapter": self.metadata.name, "row_count": len(df)},
        )
        return df

    def from_target(self, target_data: Any) -> XmlDocument:
        """Rebuild the element tree described by a DataFrame and parse it.

        Raises:
            TypeError: If ``target_data`` is not a DataFrame
            ValueError: If the rows do not describe a single element tree
            XmlError: If names or values are not well-formed XML
        """
        self._require_library()
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            raise TypeError(f"Expected a pandas DataFrame, got {type(target_data).__name__}")
        missing = {"path", "name"} - set(target_data.columns)
        if missing:
            raise ValueError(f"DataFrame is missing columns: {', '.join(sorted(missing))}")

        root: Optional[XmlElement] = None
        elements: Dict[str, XmlElement] = {}
        for row in target_data.to_dict("records"):
            attributes = {
                column[len(ATTRIBUTE_COLUMN_PREFIX):]: str(value)
                for column, value in row.items()
                if column.startswith(ATTRIBUTE_COLUMN_PREFIX) and not pd.isna(value)
            }
            element = XmlElement(str(row["name"]), attributes)
            text = row.get("text")
            if isinstance(text, str) and text:
                element.append_child(XmlText(text))

            path = str(row["path"])
            parent_path = path.rpartition("/")[0]
            if parent_path:
                parent = elements.get(parent_path)
                if parent is None:
                    raise ValueError(f"Row {path} appears before its parent")
                parent.append_child(element)
            elif root is None:
                root = element
            else:
                raise ValueError("DataFrame describes more than one root element")
            elements[path] = element

        if root is None:
            raise ValueError("DataFrame has no rows")
        return self._parse_serialized(serialize(root))


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        with self._lock:
            metadata = adapter_class().metadata
            self._adapters[metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Returns:
            Adapter instance if registered and its library is importable, None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        adapter = adapter_class(config, correlation_id)
        return adapter if adapter.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        with self._lock:
            adapter_classes = list(self._adapters.values())
        available = []
        for adapter_class in adapter_classes:
            adapter = adapter_class()
            if adapter.is_available():
                available.append(adapter.metadata)
        return available


_global_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an adapter class with the global registry."""
    _global_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
) -> Optional[IntegrationAdapter]:
    """Get an adapter from the global registry."""
    return _global_registry.get_adapter(adapter_name, config, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List adapters in the global registry whose libraries are installed."""
    return _global_registry.list_available_adapters()


register_adapter(ElementTreeAdapter)
register_adapter(LxmlAdapter)
register_adapter(BeautifulSoupAdapter)
register_adapter(PandasAdapter)
