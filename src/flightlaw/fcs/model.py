"""Model base: execution rate, interface properties and pre/post functions.

A model runs once every `rate` simulation frames. Its documents may declare
interface properties, plain values that other systems and the host
application read and write:

    <property value="0.5">ap/roll-gain</property>

and functions evaluated before (type="pre", the default) or after
(type="post") the model's main work.
"""

import logging

from flightlaw.core.document import DocumentError, Element
from flightlaw.core.properties import PropertyError, PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.function import Function

logger = logging.getLogger(__name__)

DEFAULT_DELTA_T = 1.0 / 120.0


class Model:
    """Base of executable models.

    Attributes:
        name: Model name.
        properties: Property store the model binds to.
        delta_t: Simulation frame time step, in seconds.
        rate: Run once every `rate` frames.
    """

    def __init__(
        self, properties: PropertyStore, delta_t: float = DEFAULT_DELTA_T, rate: int = 1
    ) -> None:
        self.name = ""
        self.properties = properties
        self.delta_t = delta_t
        self.rate = max(1, int(rate))
        self._exe_ctr = 1
        self.interface_values: dict[str, float] = {}
        self.pre_functions: list[Function] = []
        self.post_functions: list[Function] = []

    def get_dt(self) -> float:
        """Time step of one model execution."""
        return self.delta_t * self.rate

    def set_rate(self, rate: int) -> None:
        self.rate = max(1, int(rate))
        self._exe_ctr = 1

    def is_due(self) -> bool:
        """Advance the rate counter; True if this frame runs the model."""
        if self.rate == 1:
            return True
        if self._exe_ctr >= self.rate:
            self._exe_ctr = 0
        due = self._exe_ctr == 1
        self._exe_ctr += 1
        return due

    # Interface properties

    def tie_interface_property(self, path: str, value: float, tied: list[str]) -> None:
        """Create a read/write property backed by this model.

        Args:
            path: Property path.
            value: Initial value.
            tied: Receives the path so a failed load can release it.

        Raises:
            StructuralConfigError: If the path is invalid.
        """
        self.interface_values[path] = value
        try:
            self.properties.tie(
                path,
                lambda: self.interface_values[path],
                lambda v: self.interface_values.__setitem__(path, float(v)),
            )
        except PropertyError as e:
            del self.interface_values[path]
            raise StructuralConfigError(f"Interface property {path}: {e}") from e
        tied.append(path)

    def load_interface_properties(self, element: Element, tied: list[str]) -> None:
        """Create the <property> declarations of a document.

        Properties that already exist are left untouched.
        """
        for property_element in element.iter_elements("property"):
            path = property_element.get_data_line()
            if not path:
                raise StructuralConfigError(f"Empty <property> in <{element.name}>")
            if self.properties.has_node(path):
                logger.warning("Property %s is already defined", path)
                continue
            self.tie_interface_property(path, _initial_value(property_element), tied)

    def release_interface_properties(self, paths: list[str]) -> None:
        for path in paths:
            self.properties.untie(path)
            self.interface_values.pop(path, None)

    # Functions

    def load_functions(self, element: Element) -> tuple[list[Function], list[Function]]:
        """Compile the <function> children of a document.

        Returns:
            The pre-functions and post-functions, not yet bound or added.
        """
        pre: list[Function] = []
        post: list[Function] = []
        for function_element in element.iter_elements("function"):
            kind = function_element.get_attribute_value("type") or "pre"
            if kind not in ("pre", "post"):
                raise StructuralConfigError(f"Unknown function type {kind!r}")
            function = Function(function_element, self.properties)
            (pre if kind == "pre" else post).append(function)
        return pre, post

    def run_pre_functions(self) -> None:
        """Run the functions evaluated before the model's own work."""
        _run_functions(self.pre_functions)

    def run_post_functions(self) -> None:
        """Run the functions evaluated after the model's own work."""
        _run_functions(self.post_functions)


def _run_functions(functions: list[Function]) -> None:
    # a failing function is logged and the rest still run
    for function in functions:
        try:
            function.run()
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Function %s failed", function.name or "<unnamed>")


def _initial_value(element: Element) -> float:
    if not element.get_attribute_value("value"):
        return 0.0
    try:
        return element.get_attribute_value_as_number("value")
    except DocumentError as e:
        raise StructuralConfigError(str(e)) from e
