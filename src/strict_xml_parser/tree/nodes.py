"""Document tree produced by the parser.

Nodes are dataclasses. Equality is structural: two nodes are equal when they
have the same type, the same fields and equal children, regardless of where
they are attached. Parent links are set exactly once, when a node is added
to its container.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Union

from ..shared.json_output import dumps


class NodeType(str, Enum):
    """Discriminator shared by every node variant."""

    CDATA = "cdata"
    COMMENT = "comment"
    DOCUMENT = "document"
    DOCUMENT_TYPE = "doctype"
    ELEMENT = "element"
    PROCESSING_INSTRUCTION = "pi"
    TEXT = "text"
    XML_DECLARATION = "xmldecl"


XML_SPACE = "xml:space"


@dataclass
class XmlNode:
    """Base class for all nodes.

    ``start`` and ``end`` are storage offsets of the node's source text, or -1
    when offsets were not requested.
    """

    type: ClassVar[NodeType]

    parent: Optional["XmlParent"] = field(default=None, compare=False, repr=False, kw_only=True)
    start: int = field(default=-1, kw_only=True)
    end: int = field(default=-1, kw_only=True)

    def _attach(self, parent: "XmlParent") -> None:
        if self.parent is not None and self.parent is not parent:
            raise ValueError(f"{type(self).__name__} is already attached to a parent")
        self.parent = parent

    @property
    def document(self) -> Optional["XmlDocument"]:
        """The document containing this node, if any."""
        node: Optional[XmlNode] = self
        while node is not None:
            if isinstance(node, XmlDocument):
                return node
            node = node.parent
        return None

    @property
    def is_root_node(self) -> bool:
        """Whether this is the document's root element."""
        return isinstance(self, XmlElement) and isinstance(self.parent, XmlDocument)

    @property
    def preserve_whitespace(self) -> bool:
        """Whether whitespace is significant here, per the nearest ``xml:space``."""
        node: Optional[XmlNode] = self
        while node is not None:
            if isinstance(node, XmlElement) and XML_SPACE in node.attributes:
                return node.attributes[XML_SPACE] == "preserve"
            node = node.parent
        return False

    def _fields_dict(self) -> Dict[str, Any]:
        return {}

    def _own_fields(self) -> List[Tuple[str, Any]]:
        """Compared fields other than children, in declaration order."""
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if f.compare and f.name != "children"
        ]

    def _node_dict(self, preserve_whitespace: bool) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type.value}
        if self.is_root_node:
            result["is_root_node"] = True
        if preserve_whitespace:
            result["preserve_whitespace"] = True
        if self.start != -1:
            result["start"] = self.start
        if self.end != -1:
            result["end"] = self.end
        result.update(self._fields_dict())
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Structured form of the node and its subtree. Parent links are not included."""
        preserve = self.preserve_whitespace
        result = self._node_dict(preserve)
        stack: List[Tuple[XmlNode, Dict[str, Any], bool]] = [(self, result, preserve)]
        while stack:
            node, node_dict, preserve = stack.pop()
            if not isinstance(node, _Container):
                continue
            children = node_dict["children"] = []
            for child in node.children:
                child_preserve = preserve
                if isinstance(child, XmlElement) and XML_SPACE in child.attributes:
                    child_preserve = child.attributes[XML_SPACE] == "preserve"
                child_dict = child._node_dict(child_preserve)
                children.append(child_dict)
                stack.append((child, child_dict, child_preserve))
        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        return dumps(self.to_dict(), indent=indent)


class _Container:
    """Child management shared by documents and elements."""

    children: List[XmlNode]

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            left, right = pairs.pop()
            if type(left) is not type(right) or left._own_fields() != right._own_fields():
                return False
            if isinstance(left, _Container):
                if len(left.children) != len(right.children):
                    return False
                pairs.extend(zip(left.children, right.children))
        return True

    def __repr__(self) -> str:
        own = ", ".join(f"{name}={value!r}" for name, value in self._own_fields())
        count = len(self.children)
        noun = "node" if count == 1 else "nodes"
        return f"{type(self).__name__}({own}, children=<{count} {noun}>)"

    def _adopt_children(self) -> None:
        for child in self.children:
            child._attach(self)  # type: ignore[arg-type]

    def append_child(self, child: XmlNode) -> XmlNode:
        """Attach ``child`` and add it after the existing children."""
        child._attach(self)  # type: ignore[arg-type]
        self.children.append(child)
        return child

    @property
    def text(self) -> str:
        """Concatenated text of all descendant text and CDATA nodes."""
        parts = []
        for node in self.iter_descendants():
            if isinstance(node, (XmlText, XmlCdata)):
                parts.append(node.text)
        return "".join(parts)

    def iter_descendants(self) -> Iterator[XmlNode]:
        """Yield every descendant node in document order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, _Container):
                stack.extend(reversed(node.children))

    def iter_elements(self) -> Iterator["XmlElement"]:
        """Yield every descendant element in document order."""
        for node in self.iter_descendants():
            if isinstance(node, XmlElement):
                yield node

    def find(self, name: str) -> Optional["XmlElement"]:
        """Find the first descendant element named ``name``."""
        return next((e for e in self.iter_elements() if e.name == name), None)

    def find_all(self, name: str) -> List["XmlElement"]:
        """Find all descendant elements named ``name``."""
        return [e for e in self.iter_elements() if e.name == name]


@dataclass(eq=False, repr=False)
class XmlDocument(_Container, XmlNode):
    """Top-level container: optional declaration and doctype, one root element."""

    type: ClassVar[NodeType] = NodeType.DOCUMENT

    children: List[XmlNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._adopt_children()

    @property
    def root(self) -> Optional["XmlElement"]:
        """The root element."""
        return next((c for c in self.children if isinstance(c, XmlElement)), None)


@dataclass(eq=False, repr=False)
class XmlElement(_Container, XmlNode):
    """An element with ordered attributes and mixed content."""

    type: ClassVar[NodeType] = NodeType.ELEMENT

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[XmlNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Element name cannot be empty")
        self._adopt_children()

    @property
    def is_empty(self) -> bool:
        """Whether the element has no children."""
        return not self.children

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def _fields_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "attributes": dict(self.attributes),
        }


@dataclass
class XmlText(XmlNode):
    """Character data, including resolved references."""

    type: ClassVar[NodeType] = NodeType.TEXT

    text: str = ""

    def _fields_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass
class XmlCdata(XmlNode):
    """A CDATA section (only emitted when CDATA preservation is enabled)."""

    type: ClassVar[NodeType] = NodeType.CDATA

    text: str = ""

    def _fields_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass
class XmlComment(XmlNode):
    """A comment; ``content`` has surrounding whitespace trimmed."""

    type: ClassVar[NodeType] = NodeType.COMMENT

    content: str = ""

    def _fields_dict(self) -> Dict[str, Any]:
        return {"content": self.content}


@dataclass
class XmlProcessingInstruction(XmlNode):
    type: ClassVar[NodeType] = NodeType.PROCESSING_INSTRUCTION

    name: str
    content: str = ""

    def _fields_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name}
        if self.content:
            result["content"] = self.content
        return result


@dataclass
class XmlDocumentType(XmlNode):
    """Document type declaration. The internal subset is kept verbatim."""

    type: ClassVar[NodeType] = NodeType.DOCUMENT_TYPE

    name: str
    public_id: Optional[str] = None
    system_id: Optional[str] = None
    internal_subset: Optional[str] = None

    def _fields_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name}
        for key in ("public_id", "system_id", "internal_subset"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class XmlDeclaration(XmlNode):
    type: ClassVar[NodeType] = NodeType.XML_DECLARATION

    version: str = "1.0"
    encoding: Optional[str] = None
    standalone: Optional[str] = None

    def _fields_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"version": self.version}
        if self.encoding is not None:
            result["encoding"] = self.encoding
        if self.standalone is not None:
            result["standalone"] = self.standalone
        return result


XmlParent = Union[XmlDocument, XmlElement]
