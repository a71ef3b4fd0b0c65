"""Hierarchical property store shared by the simulation and its control laws.

Every simulation quantity that configuration may reference lives in a tree
of named nodes addressed by slash-separated paths ("fcs/elevator-pos-rad",
"fcs/throttle-cmd-norm[1]"). A node either stores its own value or is *tied*
to program accessors, in which case reads and writes go straight to the
owning object.

A path segment without an index is index 0, so "fcs/throttle-cmd-norm" and
"fcs/throttle-cmd-norm[0]" name the same node.

Every single-node read or write holds the store lock, so one write is atomic
to readers on other threads. Nothing is guaranteed across several writes.

Typical usage example:
    from flightlaw.core.properties import PropertyStore

    store = PropertyStore()
    store.set_double_value("ap/heading-setpoint-deg", 270.0)
    store.tie("fcs/elevator-cmd-norm", fcs.get_de_cmd, fcs.set_de_cmd)
    value = store.get_double_value("fcs/elevator-cmd-norm")
"""

import logging
import re
import threading
from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"^([A-Za-z0-9_][A-Za-z0-9_\-.]*)(?:\[(\d+)\])?$")
_INVALID_NAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_\-./]")

Getter = Callable[[], float | bool]
Setter = Callable[[float], None]


class PropertyError(Exception):
    """Raised when a property path is malformed or a binding conflicts."""


def create_indexed_property_name(name: str, index: int) -> str:
    """Build the path of one element of an indexed property.

    Examples:
        >>> create_indexed_property_name("fcs/throttle-cmd-norm", 2)
        'fcs/throttle-cmd-norm[2]'
    """
    return f"{name}[{index}]"


def make_property_name(name: str, lowercase: bool = True) -> str:
    """Turn a free-form component name into a valid property name.

    Examples:
        >>> make_property_name("Pitch Rate Gain")
        'pitch-rate-gain'
    """
    cleaned = _INVALID_NAME_CHARS_RE.sub("-", name.strip())
    return cleaned.lower() if lowercase else cleaned


def split_path(path: str) -> list[tuple[str, int]]:
    """Split a property path into (name, index) segments.

    Raises:
        PropertyError: If the path is empty or a segment is malformed.
    """
    stripped = path.strip().strip("/")
    if not stripped:
        raise PropertyError(f"Empty property path: {path!r}")

    segments = []
    for part in stripped.split("/"):
        match = _SEGMENT_RE.match(part)
        if match is None:
            raise PropertyError(f"Malformed property path segment {part!r} in {path!r}")
        segments.append((match.group(1), int(match.group(2) or 0)))
    return segments


class PropertyNode:
    """One node of the property tree.

    Attributes:
        name: Node name without index.
        index: Index among siblings of the same name.
        parent: Parent node, None for the root.
    """

    def __init__(
        self, name: str, index: int, parent: "PropertyNode | None", lock: threading.RLock
    ) -> None:
        self.name = name
        self.index = index
        self.parent = parent
        self._lock = lock
        self._children: dict[tuple[str, int], PropertyNode] = {}
        self._value: float | bool = 0.0
        self._getter: Getter | None = None
        self._setter: Setter | None = None

    def get_full_path(self) -> str:
        """Return the canonical path of this node (index 0 omitted)."""
        parts = []
        node: PropertyNode | None = self
        while node is not None and node.parent is not None:
            parts.append(node.name if node.index == 0 else f"{node.name}[{node.index}]")
            node = node.parent
        return "/".join(reversed(parts))

    def get_child(self, name: str, index: int = 0, create: bool = False) -> "PropertyNode | None":
        key = (name, index)
        child = self._children.get(key)
        if child is None and create:
            child = PropertyNode(name, index, self, self._lock)
            self._children[key] = child
        return child

    def children(self) -> list["PropertyNode"]:
        return list(self._children.values())

    def is_tied(self) -> bool:
        return self._getter is not None

    def is_writable(self) -> bool:
        return self._getter is None or self._setter is not None

    def get_value(self) -> float | bool:
        with self._lock:
            if self._getter is not None:
                return self._getter()
            return self._value

    def get_double_value(self) -> float:
        return float(self.get_value())

    def get_bool_value(self) -> bool:
        return self.get_double_value() != 0.0

    def set_double_value(self, value: float) -> bool:
        """Write the node.

        Returns:
            False if the node is tied read-only; the write is ignored.
        """
        with self._lock:
            if self._getter is not None:
                if self._setter is None:
                    logger.warning("Attempt to write read-only property %s", self.get_full_path())
                    return False
                self._setter(value)
                return True
            self._value = float(value)
            return True

    def set_bool_value(self, value: bool) -> bool:
        return self.set_double_value(1.0 if value else 0.0)

    def _tie(self, getter: Getter, setter: Setter | None) -> None:
        with self._lock:
            if self._getter is not None:
                raise PropertyError(f"Property {self.get_full_path()} is already tied")
            previous = self._value
            self._getter = getter
            self._setter = setter
            if setter is not None and previous != 0.0:
                setter(previous)

    def _untie(self) -> None:
        with self._lock:
            if self._getter is None:
                return
            self._value = self._getter()
            self._getter = None
            self._setter = None

    def __repr__(self) -> str:
        return f"PropertyNode({self.get_full_path()!r}, value={self.get_value()!r})"


class PropertyStore:
    """Path-addressed property tree.

    Examples:
        >>> store = PropertyStore()
        >>> store.set_double_value("ap/master", 1.0)
        >>> store.has_node("ap/master")
        True
        >>> store.get_node("ap/missing") is None
        True
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.root = PropertyNode("", 0, None, self._lock)

    def get_node(self, path: str, create: bool = False) -> PropertyNode | None:
        """Look up a node.

        Args:
            path: Property path.
            create: Create missing nodes along the way.

        Returns:
            The node, or None when it does not exist and create is False.

        Raises:
            PropertyError: If the path is malformed.
        """
        node: PropertyNode | None = self.root
        with self._lock:
            for name, index in split_path(path):
                node = node.get_child(name, index, create=create)
                if node is None:
                    return None
        return node

    def has_node(self, path: str) -> bool:
        return self.get_node(path) is not None

    def get_double_value(self, path: str, default: float = 0.0) -> float:
        node = self.get_node(path)
        if node is None:
            return default
        return node.get_double_value()

    def get_bool_value(self, path: str, default: bool = False) -> bool:
        node = self.get_node(path)
        if node is None:
            return default
        return node.get_bool_value()

    def set_double_value(self, path: str, value: float) -> bool:
        """Write a property, creating it when absent."""
        node = self.get_node(path, create=True)
        return node.set_double_value(value)

    def set_bool_value(self, path: str, value: bool) -> bool:
        return self.set_double_value(path, 1.0 if value else 0.0)

    def tie(self, path: str, getter: Getter, setter: Setter | None = None) -> PropertyNode:
        """Bind a path to program accessors.

        A value already stored in an untied node is handed to the setter so
        values written before the binding are not lost.

        Args:
            path: Property path.
            getter: Callable returning the current value.
            setter: Callable accepting a new value; None makes the node read-only.

        Returns:
            The tied node.

        Raises:
            PropertyError: If the node is already tied.
        """
        node = self.get_node(path, create=True)
        node._tie(getter, setter)
        logger.debug("Tied property %s%s", node.get_full_path(), "" if setter else " (read-only)")
        return node

    def untie(self, path: str) -> None:
        """Release a binding, keeping the last value as a plain stored value."""
        node = self.get_node(path)
        if node is not None:
            node._untie()

    def is_tied(self, path: str) -> bool:
        node = self.get_node(path)
        return node is not None and node.is_tied()

    def iter_nodes(self) -> Iterator[PropertyNode]:
        """Yield every node below the root, depth first."""
        stack = list(reversed(self.root.children()))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def snapshot(self) -> dict[str, float]:
        """Return path → value for every leaf node."""
        return {
            node.get_full_path(): node.get_double_value()
            for node in self.iter_nodes()
            if not node.children()
        }
