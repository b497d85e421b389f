"""Mutable document tree for parsed markup.

The tree is made of four node kinds (document, element, text and comment)
distinguished by a ``kind`` tag that the formatter dispatches on. Children are
owned by their parent's ``children`` list; each node refers back to its parent,
and ``set_parent`` is the only operation that changes that link.
"""

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    ClassVar,
    Iterable,
    Iterator,
    List,
    Optional,
    Union,
)

from tolerant_markup.shared.errors import TreeStructureError

if TYPE_CHECKING:
    from tolerant_markup.shared.config import FormatterConfig

DOCUMENT_NAME = "#document"
TEXT_NAME = "#text"
COMMENT_NAME = "#comment"
PATH_SEPARATOR = "/"
QUOTED_NAME_CHARACTERS = frozenset("=>/")  # Would end the name when written bare


class NodeKind(Enum):
    """The variant of a tree node."""

    DOCUMENT = auto()
    ELEMENT = auto()
    TEXT = auto()
    COMMENT = auto()


@dataclass
class TagAttribute:
    """A single attribute of an element.

    Attributes:
        name: Attribute name
        value: Attribute value; None marks a boolean attribute such as
            ``disabled``
    """

    name: str
    value: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate attribute values."""
        if not self.name:
            raise ValueError("Attribute name cannot be empty")

    @property
    def is_boolean(self) -> bool:
        """True when the attribute has no value part."""
        return self.value is None

    @property
    def needs_quoted_name(self) -> bool:
        """True when the name only reads back as one name inside quotes."""
        return any(c.isspace() or c in QUOTED_NAME_CHARACTERS for c in self.name)

    def to_markup(self) -> str:
        """Render the attribute as it appears inside a start tag."""
        name = f'"{self.name}"' if self.needs_quoted_name else self.name
        if self.value is None:
            return name
        return f'{name}="{self.value}"'

    def __str__(self) -> str:
        return self.to_markup()

    @classmethod
    def from_pairs(cls, *pairs: str) -> List["TagAttribute"]:
        """Build attributes from alternating names and values.

        A trailing name without a value becomes a boolean attribute.

        Example:
            ``TagAttribute.from_pairs("id", "main", "hidden")``
        """
        attributes = []
        for index in range(0, len(pairs), 2):
            if index + 1 < len(pairs):
                attributes.append(cls(pairs[index], pairs[index + 1]))
            else:
                attributes.append(cls(pairs[index]))
        return attributes

    @staticmethod
    def to_markup_string(attributes: Iterable["TagAttribute"]) -> str:
        """Render attributes for a start tag, each preceded by one space."""
        return "".join(f" {attribute.to_markup()}" for attribute in attributes)


class MarkupNode:
    """Base class for every node in the tree.

    Attributes:
        name: Tag name for elements, ``#text``/``#comment``/``#document``
            for the other kinds
        children: Child nodes in render order
    """

    kind: ClassVar[NodeKind]

    def __init__(self, name: str) -> None:
        self.name = name
        self.children: List["MarkupNode"] = []
        self._parent: Optional["MarkupNode"] = None

    @property
    def parent(self) -> Optional["MarkupNode"]:
        """The node owning this one, or None for a root or detached node."""
        return self._parent

    def set_parent(self, new_parent: Optional["MarkupNode"]) -> None:
        """Move this node under ``new_parent``.

        The node is removed from its current parent's children and appended
        to the new parent's children in one step. Passing None detaches it.

        Args:
            new_parent: The node to append this node to, or None

        Raises:
            TreeStructureError: If the move would create a cycle
        """
        if new_parent is not None:
            if new_parent is self:
                raise TreeStructureError(f"Cannot make {self.name!r} its own child")
            if any(ancestor is self for ancestor in new_parent.ancestors):
                raise TreeStructureError(
                    f"Cannot move {self.name!r} under its own descendant "
                    f"{new_parent.name!r}"
                )

        old_parent = self.parent
        if old_parent is not None:
            old_parent.children.remove(self)

        if new_parent is None:
            self._parent = None
            return

        self._parent = new_parent
        new_parent.children.append(self)

    def add(self, node: "MarkupNode") -> "MarkupNode":
        """Append ``node`` as the last child, removing it from any old parent.

        Returns:
            The added node
        """
        node.set_parent(self)
        return node

    def detach(self) -> "MarkupNode":
        """Remove this node from its parent."""
        self.set_parent(None)
        return self

    @property
    def ancestors(self) -> Iterator["MarkupNode"]:
        """Parent, grandparent and so on up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def descendants(self) -> Iterator["MarkupNode"]:
        """This node and every node below it, in pre-order."""
        stack: List[MarkupNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def root(self) -> "MarkupNode":
        """Topmost ancestor, or the node itself when it has no parent."""
        node = self
        for node in self.ancestors:
            pass
        return node

    @property
    def depth(self) -> int:
        """Number of ancestors."""
        return sum(1 for _ in self.ancestors)

    @property
    def path(self) -> str:
        """Slash-separated names from the root down to this node.

        The document itself contributes no name, so an element directly under
        a document has the path ``/name``.
        """
        parent = self.parent
        if parent is None:
            return "" if self.kind is NodeKind.DOCUMENT else self.name
        return f"{parent.path}{PATH_SEPARATOR}{self.name}"

    @property
    def text_only_child(self) -> bool:
        """True when the only child is a text node."""
        return len(self.children) == 1 and self.children[0].kind is NodeKind.TEXT

    @property
    def markup(self) -> str:
        """This node rendered as formatted markup."""
        return self.render()

    @property
    def inner_markup(self) -> str:
        """The children of this node rendered as formatted markup."""
        return self.render(inner=True)

    def render(
        self,
        config: Optional["FormatterConfig"] = None,
        inner: bool = False,
        strict: bool = False,
    ) -> str:
        """Render this node with a fresh formatter.

        Args:
            config: Formatter configuration, defaults when omitted
            inner: Render only the children
            strict: Treat text outside any element as an error

        Returns:
            The formatted markup
        """
        from tolerant_markup.formatting.formatter import format_children, format_node

        if inner:
            return format_children(self, config, strict)
        return format_node(self, config, strict)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} children={len(self.children)}>"


class MarkupContainer(MarkupNode):
    """Node that holds elements, text and comments (documents and elements)."""

    def add_element(
        self,
        name: Union[str, "MarkupElement"],
        *attributes: TagAttribute,
        inline: bool = False
    ) -> "MarkupElement":
        """Append a child element.

        Args:
            name: Tag name of the new element, or an existing element to move
            *attributes: Attributes of the new element
            inline: Layout hint for the new element

        Returns:
            The appended element
        """
        if isinstance(name, MarkupElement):
            element = name
        else:
            element = MarkupElement(name, list(attributes), inline=inline)
        self.add(element)
        return element

    def create_element(
        self,
        name: str,
        text: Optional[str] = None,
        *attributes: TagAttribute
    ) -> "MarkupElement":
        """Append a child element holding an optional text child."""
        element = self.add_element(name, *attributes)
        if text:
            element.add_text(text)
        return element

    def add_text(self, text: str) -> "MarkupText":
        """Append a text child."""
        node = MarkupText(text)
        self.add(node)
        return node

    def add_comment(self, text: str) -> "MarkupComment":
        """Append a comment child."""
        node = MarkupComment(text)
        self.add(node)
        return node

    def iter_elements(self) -> Iterator["MarkupElement"]:
        """Every element below this node, in pre-order."""
        for node in self.descendants:
            if node is not self and node.kind is NodeKind.ELEMENT:
                yield node  # type: ignore[misc]

    def find(self, name: str) -> Optional["MarkupElement"]:
        """First element below this node with the given tag name.

        Tag names are compared case-insensitively.
        """
        lowered = name.lower()
        for element in self.iter_elements():
            if element.name.lower() == lowered:
                return element
        return None

    def find_all(self, name: str) -> List["MarkupElement"]:
        """All elements below this node with the given tag name."""
        lowered = name.lower()
        return [
            element for element in self.iter_elements()
            if element.name.lower() == lowered
        ]

    @property
    def text_content(self) -> str:
        """Text of every text node below this node, joined by spaces."""
        parts = [
            node.value.strip()  # type: ignore[attr-defined]
            for node in self.descendants
            if node.kind is NodeKind.TEXT
        ]
        return " ".join(part for part in parts if part)


class MarkupElement(MarkupContainer):
    """A tagged element with attributes.

    Attributes:
        name: Tag name as written in the source
        attributes: Attributes in source order
        inline: Render the element on one line even when it has children
    """

    kind = NodeKind.ELEMENT

    def __init__(
        self,
        name: str,
        attributes: Optional[List[TagAttribute]] = None,
        inline: bool = False
    ) -> None:
        if not name:
            raise ValueError("Element name cannot be empty")
        super().__init__(name)
        self.attributes: List[TagAttribute] = list(attributes or [])
        self.inline = inline

    def get_attribute_node(self, name: str) -> Optional[TagAttribute]:
        """Look an attribute up by exact name, then case-insensitively."""
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        lowered = name.lower()
        for attribute in self.attributes:
            if attribute.name.lower() == lowered:
                return attribute
        return None

    def get_attribute(
        self, name: str, default: Optional[str] = None
    ) -> Optional[str]:
        """Get an attribute value, or ``default`` when the attribute is missing.

        Boolean attributes have the value None.
        """
        attribute = self.get_attribute_node(name)
        if attribute is None:
            return default
        return attribute.value

    def set_attribute(self, name: str, value: Optional[str] = None) -> TagAttribute:
        """Set the value of an existing attribute or append a new one."""
        attribute = self.get_attribute_node(name)
        if attribute is None:
            attribute = TagAttribute(name, value)
            self.attributes.append(attribute)
        else:
            attribute.value = value
        return attribute

    def has_attribute(self, name: str) -> bool:
        """Check if element has specific attribute."""
        return self.get_attribute_node(name) is not None

    def remove_attribute(self, name: str) -> bool:
        """Remove an attribute; returns False when it was not present."""
        attribute = self.get_attribute_node(name)
        if attribute is None:
            return False
        self.attributes.remove(attribute)
        return True

    def __getitem__(self, key: Union[int, str]) -> Optional[TagAttribute]:
        if isinstance(key, int):
            if 0 <= key < len(self.attributes):
                return self.attributes[key]
            return None
        return self.get_attribute_node(key)

    def __setitem__(
        self, key: Union[int, str], value: Union[TagAttribute, str, None]
    ) -> None:
        if isinstance(key, int):
            if not 0 <= key < len(self.attributes):
                raise IndexError("Attribute index out of range")
            if not isinstance(value, TagAttribute):
                value = TagAttribute(self.attributes[key].name, value)
            self.attributes[key] = value
            return

        if not isinstance(value, TagAttribute):
            value = TagAttribute(key, value)
        existing = self.get_attribute_node(key)
        if existing is None:
            self.attributes.append(value)
        else:
            self.attributes[self.attributes.index(existing)] = value

    @property
    def id_attribute(self) -> Optional[str]:
        """The ``id`` attribute."""
        return self.get_attribute("id")

    @id_attribute.setter
    def id_attribute(self, value: Optional[str]) -> None:
        self.set_attribute("id", value)

    @property
    def class_attribute(self) -> Optional[str]:
        """The ``class`` attribute."""
        return self.get_attribute("class")

    @class_attribute.setter
    def class_attribute(self, value: Optional[str]) -> None:
        self.set_attribute("class", value)

    @property
    def style_attribute(self) -> Optional[str]:
        """The ``style`` attribute."""
        return self.get_attribute("style")

    @style_attribute.setter
    def style_attribute(self, value: Optional[str]) -> None:
        self.set_attribute("style", value)

    @property
    def href_attribute(self) -> Optional[str]:
        """The ``href`` attribute."""
        return self.get_attribute("href")

    @href_attribute.setter
    def href_attribute(self, value: Optional[str]) -> None:
        self.set_attribute("href", value)

    @property
    def is_declaration(self) -> bool:
        """True for ``<!DOCTYPE ...>`` and ``<?xml ...?>`` style tags."""
        return self.name[0] in "!?"

    def __str__(self) -> str:
        return f"<{self.name}{TagAttribute.to_markup_string(self.attributes)}>"


class MarkupText(MarkupNode):
    """A run of character data."""

    kind = NodeKind.TEXT

    def __init__(self, value: str) -> None:
        super().__init__(TEXT_NAME)
        self.value = value

    def __str__(self) -> str:
        return self.value


class MarkupComment(MarkupNode):
    """A ``<!-- ... -->`` comment; ``value`` excludes the delimiters."""

    kind = NodeKind.COMMENT

    def __init__(self, value: str) -> None:
        super().__init__(COMMENT_NAME)
        self.value = value

    def __str__(self) -> str:
        return f"// {self.value}"


class MarkupDocument(MarkupContainer):
    """Root of a markup tree.

    Iterating a document yields every node in the tree in pre-order,
    starting with the document itself.

    Attributes:
        encoding: Encoding the source was decoded from, used when saving
        source_path: File the document was loaded from, if any
        byte_order_mark: Whether the source started with a byte order mark
        compression: ``"gzip"`` or ``"zip"`` when the source file was packed
    """

    kind = NodeKind.DOCUMENT

    def __init__(
        self,
        encoding: str = "utf-8",
        source_path: Optional[Union[str, Path]] = None,
        byte_order_mark: bool = False,
        compression: Optional[str] = None
    ) -> None:
        super().__init__(DOCUMENT_NAME)
        self.encoding = encoding
        self.source_path = Path(source_path) if source_path is not None else None
        self.byte_order_mark = byte_order_mark
        self.compression = compression

    def set_parent(self, new_parent: Optional[MarkupNode]) -> None:
        """Documents are always roots.

        Raises:
            TreeStructureError: If ``new_parent`` is not None
        """
        if new_parent is not None:
            raise TreeStructureError("A document cannot have a parent")

    def __iter__(self) -> Iterator[MarkupNode]:
        return self.descendants

    @property
    def root_element(self) -> Optional[MarkupElement]:
        """First top-level element that is not a declaration."""
        for child in self.children:
            if child.kind is NodeKind.ELEMENT and not child.is_declaration:  # type: ignore[attr-defined]
                return child  # type: ignore[return-value]
        return None

    def add_doctype(self, doctype: str = "html") -> MarkupElement:
        """Append a ``<!DOCTYPE doctype>`` declaration."""
        return self.add_element("!DOCTYPE", TagAttribute(doctype))

    @classmethod
    def html(cls, encoding: str = "utf-8") -> "MarkupDocument":
        """Create an HTML skeleton with ``html``, ``head`` and ``body``."""
        document = cls(encoding=encoding)
        document.add_doctype("html")
        html = document.add_element("html")
        html.add_element("head")
        html.add_element("body")
        return document
