"""Operands read by components: numeric constants and signed property references.

Configuration writes operands as plain text. "2.5" is a constant,
"fcs/pitch-trim-cmd-norm" a property and "-fcs/pitch-trim-cmd-norm" the
negated property.
"""

import logging
from abc import ABC, abstractmethod

from flightlaw.core.properties import PropertyError, PropertyNode, PropertyStore
from flightlaw.fcs.errors import StructuralConfigError

logger = logging.getLogger(__name__)


class Parameter(ABC):
    """A value a component reads every frame."""

    @abstractmethod
    def get_value(self) -> float:
        """Return the current value."""

    @abstractmethod
    def is_constant(self) -> bool:
        """True if the value can never change."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Text the parameter was built from, for diagnostics."""


class RealValue(Parameter):
    """A numeric constant."""

    def __init__(self, value: float) -> None:
        self._value = float(value)

    def get_value(self) -> float:
        return self._value

    def is_constant(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return repr(self._value)

    def __repr__(self) -> str:
        return f"RealValue({self._value!r})"


class PropertyValue(Parameter):
    """A property reference, optionally negated.

    Attributes:
        node: Referenced property node.
        sign: 1.0 or -1.0.
    """

    def __init__(self, node: PropertyNode, sign: float = 1.0) -> None:
        self.node = node
        self.sign = sign

    @property
    def path(self) -> str:
        return self.node.get_full_path()

    def get_value(self) -> float:
        return self.sign * self.node.get_double_value()

    def is_constant(self) -> bool:
        return False

    @property
    def name(self) -> str:
        return ("-" if self.sign < 0 else "") + self.path

    def __repr__(self) -> str:
        return f"PropertyValue({self.name!r})"


def is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def make_property_value(text: str, properties: PropertyStore) -> PropertyValue:
    """Resolve a signed property reference.

    A property that does not exist yet is created with value 0 and a warning,
    since a later document or the host application may still provide it.

    Raises:
        StructuralConfigError: If the text is empty or not a valid path.
    """
    text = text.strip()
    sign = 1.0
    if text.startswith("-"):
        sign = -1.0
        text = text[1:].strip()

    if not text:
        raise StructuralConfigError("Empty property reference")

    try:
        node = properties.get_node(text)
        if node is None:
            logger.warning("Property %s does not exist yet; created with value 0", text)
            node = properties.get_node(text, create=True)
    except PropertyError as e:
        raise StructuralConfigError(str(e)) from e

    return PropertyValue(node, sign)


def make_parameter(text: str, properties: PropertyStore) -> Parameter:
    """Build a constant or a property reference from configuration text.

    Examples:
        >>> make_parameter("0.25", store).get_value()
        0.25
        >>> make_parameter("-ap/roll-cmd", store).name
        '-ap/roll-cmd'
    """
    text = text.strip()
    if is_number(text):
        return RealValue(float(text))
    return make_property_value(text, properties)
