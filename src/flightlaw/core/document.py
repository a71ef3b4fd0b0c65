"""Configuration document tree.

System definitions are XML files. This module turns them into a small
element tree that the loader and the components read from: each element has
a tag name, attributes, ordered children and the text lines it carries.

Iteration helpers follow a cursor model: find_element() starts a search for
a tag from the first child and find_next_element() continues after the last
match, which keeps loops over repeated tags terse.

Typical usage example:
    from flightlaw.core.document import load_xml_document

    document = load_xml_document("systems/autopilot.xml")
    channel = document.find_element("channel")
    while channel is not None:
        print(channel.get_attribute_value("name"))
        channel = document.find_next_element("channel")
"""

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from pathlib import Path

from flightlaw.fcs.units import convert


class DocumentError(Exception):
    """Raised when a document cannot be read or a value cannot be converted."""


class Element:
    """One element of a configuration document.

    Attributes:
        name: Tag name.
        attributes: Attribute name to raw string value.
        children: Child elements in document order.
        data_lines: Non-empty, stripped text lines carried by the element.
        parent: Enclosing element, None for the root.
        file_name: Source file, None for documents built in memory.
    """

    def __init__(
        self,
        name: str,
        attributes: dict[str, str] | None = None,
        file_name: str | None = None,
    ) -> None:
        self.name = name
        self.attributes: dict[str, str] = dict(attributes or {})
        self.children: list[Element] = []
        self.data_lines: list[str] = []
        self.parent: Element | None = None
        self.file_name = file_name
        self._cursor = 0

    # Construction

    def add_child(self, child: "Element") -> "Element":
        child.parent = self
        if child.file_name is None:
            child.file_name = self.file_name
        self.children.append(child)
        return child

    def add_data(self, text: str) -> None:
        """Append text, split into stripped non-empty lines."""
        for line in text.splitlines():
            line = line.strip()
            if line:
                self.data_lines.append(line)

    # Attributes

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute_value(self, name: str) -> str:
        """Return an attribute value, or "" when absent."""
        return self.attributes.get(name, "").strip()

    def get_attribute_value_as_number(self, name: str) -> float:
        """Return an attribute as a float.

        Raises:
            DocumentError: If the attribute is missing or not numeric.
        """
        raw = self.get_attribute_value(name)
        if not raw:
            raise DocumentError(f"Attribute '{name}' missing on <{self.name}>{self._where()}")
        return _to_number(raw, f"attribute '{name}' of <{self.name}>{self._where()}")

    # Text payload

    def get_num_data_lines(self) -> int:
        return len(self.data_lines)

    def get_data_line(self, index: int = 0) -> str:
        """Return one data line, or "" when there is none."""
        if 0 <= index < len(self.data_lines):
            return self.data_lines[index]
        return ""

    def get_data_as_number(self) -> float:
        """Return the single data line as a float.

        Raises:
            DocumentError: If there is not exactly one numeric line.
        """
        if len(self.data_lines) != 1:
            raise DocumentError(
                f"Expected one numeric value in <{self.name}>{self._where()}, "
                f"found {len(self.data_lines)} lines"
            )
        return _to_number(self.data_lines[0], f"<{self.name}>{self._where()}")

    # Children

    def get_num_elements(self, tag: str = "") -> int:
        if not tag:
            return len(self.children)
        return sum(1 for child in self.children if child.name == tag)

    def get_element(self, index: int = 0) -> "Element | None":
        """Return the child at index and position the cursor after it."""
        if 0 <= index < len(self.children):
            self._cursor = index + 1
            return self.children[index]
        self._cursor = len(self.children)
        return None

    def get_next_element(self) -> "Element | None":
        if self._cursor < len(self.children):
            child = self.children[self._cursor]
            self._cursor += 1
            return child
        return None

    def find_element(self, tag: str = "") -> "Element | None":
        """Return the first child with the given tag ("" matches any)."""
        self._cursor = 0
        return self.find_next_element(tag)

    def find_next_element(self, tag: str = "") -> "Element | None":
        """Return the next child with the given tag after the last match."""
        for index in range(self._cursor, len(self.children)):
            child = self.children[index]
            if not tag or child.name == tag:
                self._cursor = index + 1
                return child
        self._cursor = len(self.children)
        return None

    def iter_elements(self, tag: str = "") -> Iterator["Element"]:
        """Iterate children with the given tag without touching the cursor."""
        for child in self.children:
            if not tag or child.name == tag:
                yield child

    def find_element_value(self, tag: str) -> str:
        """Return the first data line of the first child with the tag, or ""."""
        for child in self.iter_elements(tag):
            return child.get_data_line()
        return ""

    def find_element_value_as_number(self, tag: str) -> float:
        """Return the numeric value of the first child with the tag.

        Raises:
            DocumentError: If the child is missing or not numeric.
        """
        for child in self.iter_elements(tag):
            return child.get_data_as_number()
        raise DocumentError(f"Element <{tag}> missing in <{self.name}>{self._where()}")

    def find_element_value_as_number_convert_to(self, tag: str, target_unit: str) -> float:
        """Return the numeric value of a child converted to target_unit.

        The child's "unit" attribute names the unit it is written in; a
        child without one is taken to be in target_unit already.

        Raises:
            DocumentError: If the child is missing, not numeric, or its unit
                cannot be converted to target_unit.
        """
        for child in self.iter_elements(tag):
            value = child.get_data_as_number()
            unit = child.get_attribute_value("unit")
            if not unit:
                return value
            try:
                return convert(value, unit, target_unit)
            except ValueError as e:
                raise DocumentError(f"<{tag}> in <{self.name}>{self._where()}: {e}") from e
        raise DocumentError(f"Element <{tag}> missing in <{self.name}>{self._where()}")

    def _where(self) -> str:
        return f" ({self.file_name})" if self.file_name else ""

    def __repr__(self) -> str:
        return f"Element({self.name!r}, {self.attributes!r}, children={len(self.children)})"


def _to_number(raw: str, what: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise DocumentError(f"Expected a number for {what}, got {raw!r}") from e


def _from_etree(node: ET.Element, file_name: str | None) -> Element:
    element = Element(node.tag, dict(node.attrib), file_name=file_name)
    if node.text:
        element.add_data(node.text)
    for child in node:
        # ElementTree exposes comments as elements with a callable tag
        if not isinstance(child.tag, str):
            if child.tail:
                element.add_data(child.tail)
            continue
        element.add_child(_from_etree(child, file_name))
        if child.tail:
            element.add_data(child.tail)
    return element


def parse_xml_string(text: str, file_name: str | None = None) -> Element:
    """Parse a document held in memory.

    Raises:
        DocumentError: If the text is not well-formed XML.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise DocumentError(f"Malformed document{f' {file_name}' if file_name else ''}: {e}") from e
    return _from_etree(root, file_name)


def load_xml_document(path: str | Path) -> Element:
    """Read and parse a document file.

    Raises:
        DocumentError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read document {path}: {e}") from e
    return parse_xml_string(text, file_name=str(path))
