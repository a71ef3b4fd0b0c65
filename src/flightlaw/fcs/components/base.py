"""Base class for flight control components.

Every component reads its operands, computes one output, optionally delays
and clips it, then writes it to its output properties. The behavior shared
by all component kinds lives here:

    <pure_gain name="Pitch Gain">
      <input>fcs/elevator-cmd-norm</input>
      <gain>2.0</gain>
      <delay type="frames">2</delay>
      <clipto>
        <min>-1</min>
        <max>fcs/pitch-limit</max>
      </clipto>
      <output>fcs/pitch-out</output>
    </pure_gain>

The output is also published read-only under fcs/<name> (or under the
name itself when it is already a path).
"""

import math
from abc import ABC, abstractmethod
from collections import deque
from typing import TYPE_CHECKING

from flightlaw.core.document import DocumentError, Element
from flightlaw.core.logging_system import LoggerMixin
from flightlaw.core.properties import PropertyError, PropertyNode, make_property_name
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter, PropertyValue, make_parameter

if TYPE_CHECKING:
    from flightlaw.fcs.flight_control import FlightControlSystem


class FCSComponent(LoggerMixin, ABC):
    """A signal-processing unit owned by one channel.

    Attributes:
        fcs: Owning flight control system.
        kind: Configuration tag the component was built from.
        name: Component name from the "name" attribute.
        inputs: Parameters listed in <input> elements.
        output: Value computed by the last run().
        dt: Time step of one execution, in seconds.
        bound_paths: Properties this component tied, released by unbind().
    """

    def __init__(self, fcs: "FlightControlSystem", element: Element) -> None:
        self.fcs = fcs
        self.properties = fcs.properties
        self.kind = element.name
        self.name = element.get_attribute_value("name")
        self.attach_logger(type(self).__module__)

        self.inputs: list[Parameter] = []
        self.output_nodes: list[PropertyNode] = []
        self.output = 0.0
        self.input = 0.0
        self.dt = fcs.get_dt()
        self.bound_paths: list[str] = []
        self._reads: list[Parameter] = []

        self.clip = False
        self.cyclic_clip = False
        self.clip_min: Parameter | None = None
        self.clip_max: Parameter | None = None

        self.delay = 0
        self._delay_buffer: deque[float] = deque()

        if not self.name:
            raise StructuralConfigError(f"<{self.kind}> component has no name attribute")

        for input_element in element.iter_elements("input"):
            self.inputs.append(self.make_parameter(input_element.get_data_line()))

        for output_element in element.iter_elements("output"):
            self._add_output(output_element.get_data_line())

        clip_element = element.find_element("clipto")
        if clip_element is not None:
            self._load_clipto(clip_element)

        delay_element = element.find_element("delay")
        if delay_element is not None:
            self._load_delay(delay_element)

    # Loading helpers

    def make_parameter(self, text: str) -> Parameter:
        """Build an operand and remember it for dependency checks."""
        if not text.strip():
            raise StructuralConfigError(f"{self.name}: empty operand")
        parameter = make_parameter(text, self.properties)
        self._reads.append(parameter)
        return parameter

    def parameter_from(
        self, element: Element, tag: str, default: float | None = None
    ) -> Parameter | None:
        """Build an operand from the first child with the given tag.

        Returns:
            The operand, a constant for the default when the child is
            missing, or None when there is neither.
        """
        child = element.find_element(tag)
        if child is None:
            if default is None:
                return None
            return make_parameter(str(default), self.properties)
        return self.make_parameter(child.get_data_line())

    def number_from(self, element: Element, tag: str, default: float) -> float:
        """Read a numeric child value, falling back to default when absent."""
        if element.find_element(tag) is None:
            return default
        try:
            return element.find_element_value_as_number(tag)
        except DocumentError as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e

    def require_inputs(self, count: int = 1) -> None:
        if len(self.inputs) < count:
            raise StructuralConfigError(
                f"{self.kind} '{self.name}' needs {count} input(s), found {len(self.inputs)}"
            )

    def _add_output(self, path: str) -> None:
        if not path:
            raise StructuralConfigError(f"{self.name}: empty <output> element")
        try:
            node = self.properties.get_node(path, create=True)
        except PropertyError as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e
        if not node.is_writable():
            raise StructuralConfigError(f"{self.name}: output {path} is a read-only property")
        self.output_nodes.append(node)

    def _load_clipto(self, element: Element) -> None:
        min_element = element.find_element("min")
        max_element = element.find_element("max")
        if min_element is None or max_element is None:
            raise StructuralConfigError(f"{self.name}: <clipto> needs both <min> and <max>")
        self.clip_min = self.make_parameter(min_element.get_data_line())
        self.clip_max = self.make_parameter(max_element.get_data_line())
        self.cyclic_clip = element.get_attribute_value("type") == "cyclic"
        self.clip = True

    def _load_delay(self, element: Element) -> None:
        try:
            value = element.get_data_as_number()
        except DocumentError as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e

        delay_type = element.get_attribute_value("type") or "frames"
        if delay_type == "time":
            frames = value / self.dt if self.dt > 0 else 0.0
        elif delay_type == "frames":
            frames = value
        else:
            raise StructuralConfigError(f"{self.name}: unknown delay type {delay_type!r}")

        if not math.isfinite(frames):
            raise StructuralConfigError(f"{self.name}: delay must be finite, got {value}")
        self.delay = int(round(frames)) if delay_type == "time" else int(frames)

        if self.delay < 0:
            raise StructuralConfigError(f"{self.name}: negative delay")
        self._delay_buffer = deque([0.0] * self.delay, maxlen=self.delay or None)

    # Binding

    @property
    def output_path(self) -> str:
        """Property the output is published under."""
        if "/" in self.name:
            return self.name
        return "fcs/" + make_property_name(self.name)

    def bind(self) -> bool:
        """Publish the output under output_path.

        A path that is already tied keeps its existing binding; the clash is
        logged and the component still runs.

        Returns:
            True if the output was published.
        """
        path = self.output_path
        if self.properties.is_tied(path):
            self.log_error(
                "Property %s is already tied; %s output not published", path, self.name
            )
            return False
        try:
            self.properties.tie(path, lambda: self.output)
        except PropertyError as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e
        self.bound_paths.append(path)
        return True

    def tie_property(self, path: str, getter, setter=None) -> None:
        """Tie an extra property owned by this component."""
        try:
            self.properties.tie(path, getter, setter)
        except PropertyError as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e
        self.bound_paths.append(path)

    def unbind(self) -> None:
        for path in self.bound_paths:
            self.properties.untie(path)
        self.bound_paths.clear()

    def read_paths(self) -> list[str]:
        """Property paths this component reads each frame."""
        return [p.path for p in self._reads if isinstance(p, PropertyValue)]

    def written_paths(self) -> list[str]:
        """Property paths this component writes each frame."""
        paths = [node.get_full_path() for node in self.output_nodes]
        paths.extend(self.bound_paths)
        return paths

    # Execution

    @abstractmethod
    def run(self) -> None:
        """Compute one frame."""

    def reset(self) -> None:
        """Clear transient state without touching the structure."""
        self.output = 0.0
        if self.delay:
            self._delay_buffer = deque([0.0] * self.delay, maxlen=self.delay)

    def delay_output(self) -> None:
        if not self.delay:
            return
        delayed = self._delay_buffer[0]
        self._delay_buffer.append(self.output)
        self.output = delayed

    def clip_output(self) -> None:
        if not self.clip:
            return
        vmin = self.clip_min.get_value()
        vmax = self.clip_max.get_value()

        if self.cyclic_clip:
            span = vmax - vmin
            if span != 0.0 and not math.isfinite(self.output):
                self.output = math.nan
            elif span != 0.0:
                shifted = math.fmod(self.output - vmin, span)
                if shifted < 0.0:
                    shifted += span
                self.output = shifted + vmin
            return

        if self.output > vmax:
            self.output = vmax
        elif self.output < vmin:
            self.output = vmin

    def set_output(self) -> None:
        for node in self.output_nodes:
            node.set_double_value(self.output)

    def finish(self) -> None:
        """Delay, clip and publish the freshly computed output."""
        self.delay_output()
        self.clip_output()
        self.set_output()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind!r}, {self.name!r}, output={self.output:.6g})"
