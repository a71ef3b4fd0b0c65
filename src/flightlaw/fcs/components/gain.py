"""Gain components: pure, scheduled and aerosurface scaling.

The aerosurface scale maps a command domain (default -1..1) onto a
surface range, e.g. a normalized elevator command onto radians:

    <aerosurface_scale name="fcs/elevator-pos-rad">
      <input>fcs/elevator-cmd-norm</input>
      <range>
        <min>-0.35</min>
        <max>0.30</max>
      </range>
    </aerosurface_scale>

Zero-centered scaling (the default) maps the positive and negative halves
of the domain separately so a zero command always gives zero output, even
for asymmetric ranges.
"""

from flightlaw.core.document import DocumentError, Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.table import Table, load_table


class Gain(FCSComponent):
    """Multiplies its input by a constant, property or scheduled gain."""

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()

        self.gain = self.parameter_from(element, "gain", default=1.0)
        self.table: Table | None = None
        self.domain = (-1.0, 1.0)
        self.range = (0.0, 0.0)
        self.zero_centered = True

        if self.kind == "scheduled_gain":
            table_element = element.find_element("table")
            if table_element is None:
                raise StructuralConfigError(f"scheduled_gain '{self.name}' needs a <table>")
            self.table = load_table(table_element, self.properties)
            for var in (self.table.row_var, self.table.column_var):
                if var is not None:
                    self._reads.append(var)

        if self.kind == "aerosurface_scale":
            range_element = element.find_element("range")
            if range_element is None:
                raise StructuralConfigError(f"aerosurface_scale '{self.name}' needs a <range>")
            self.range = self._limits(range_element)

            domain_element = element.find_element("domain")
            if domain_element is not None:
                self.domain = self._limits(domain_element)

            zero_centered = element.find_element_value("zero_centered")
            if zero_centered:
                self.zero_centered = zero_centered.strip().lower() not in ("0", "false", "no")

    def _limits(self, element: Element) -> tuple[float, float]:
        try:
            low = element.find_element_value_as_number("min")
            high = element.find_element_value_as_number("max")
        except DocumentError as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e
        return low, high

    def run(self) -> None:
        self.input = self.inputs[0].get_value()
        gain = self.gain.get_value()

        if self.kind == "scheduled_gain":
            self.output = gain * self.table.get_value() * self.input
        elif self.kind == "aerosurface_scale":
            self.output = self._scale(self.input) * gain
        else:
            self.output = gain * self.input

        self.finish()

    def _scale(self, value: float) -> float:
        in_min, in_max = self.domain
        out_min, out_max = self.range
        value = min(max(value, in_min), in_max)

        if self.zero_centered:
            if value == 0.0:
                return 0.0
            if value > 0.0:
                return (value / in_max) * out_max if in_max != 0.0 else 0.0
            return (value / in_min) * out_min if in_min != 0.0 else 0.0

        span = in_max - in_min
        if span == 0.0:
            return out_min
        return out_min + (value - in_min) / span * (out_max - out_min)
