"""Linear filters discretized with the Tustin (bilinear) substitution.

Supported kinds and their continuous transfer functions:

    lag_filter           C1 / (s + C1)
    lead_lag_filter      (C1 s + C2) / (C3 s + C4)
    washout_filter       s / (s + C1)
    second_order_filter  (C1 s^2 + C2 s + C3) / (C4 s^2 + C5 s + C6)
    integrator           C1 / s

Coefficients may be constants or properties. Property coefficients are
re-read every frame, so scheduled filters track their schedule.

The lag, lead-lag and second-order filters start settled on their first
input so switching a filter in does not produce a transient. The washout
filter and the integrator start from zero.
"""

from enum import Enum

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter


class FilterType(Enum):
    LAG = "lag_filter"
    LEAD_LAG = "lead_lag_filter"
    WASHOUT = "washout_filter"
    SECOND_ORDER = "second_order_filter"
    INTEGRATOR = "integrator"


_COEFFICIENT_COUNT = {
    FilterType.LAG: 1,
    FilterType.LEAD_LAG: 4,
    FilterType.WASHOUT: 1,
    FilterType.SECOND_ORDER: 6,
    FilterType.INTEGRATOR: 1,
}


class Filter(FCSComponent):
    """First and second order filters and the integrator."""

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()
        self.filter_type = FilterType(self.kind)

        self.coefficients: list[Parameter | None] = [None] * 6
        for i in range(6):
            child = element.find_element(f"c{i + 1}")
            if child is not None:
                self.coefficients[i] = self.make_parameter(child.get_data_line())

        needed = _COEFFICIENT_COUNT[self.filter_type]
        missing = [f"c{i + 1}" for i in range(needed) if self.coefficients[i] is None]
        if missing:
            raise StructuralConfigError(
                f"{self.kind} '{self.name}' is missing coefficient(s) {', '.join(missing)}"
            )

        self.trigger: Parameter | None = None
        if self.filter_type is FilterType.INTEGRATOR:
            self.trigger = self.parameter_from(element, "trigger")

        self.dynamic = any(c is not None and not c.is_constant() for c in self.coefficients)
        self._ca = self._cb = self._cc = self._cd = self._ce = 0.0
        try:
            self._calculate_coefficients()
        except ZeroDivisionError as e:
            # Scheduled coefficients may not have their values yet
            if not self.dynamic:
                raise StructuralConfigError(
                    f"{self.kind} '{self.name}' has a zero denominator"
                ) from e
        self._initialize_state()

    def _c(self, i: int) -> float:
        coefficient = self.coefficients[i - 1]
        return coefficient.get_value() if coefficient is not None else 0.0

    def _calculate_coefficients(self) -> None:
        dt = self.dt
        kind = self.filter_type

        if kind is FilterType.LAG:
            denom = 2.0 + dt * self._c(1)
            self._ca = dt * self._c(1) / denom
            self._cb = (2.0 - dt * self._c(1)) / denom
        elif kind is FilterType.LEAD_LAG:
            denom = 2.0 * self._c(3) + dt * self._c(4)
            self._ca = (2.0 * self._c(1) + dt * self._c(2)) / denom
            self._cb = (dt * self._c(2) - 2.0 * self._c(1)) / denom
            self._cc = (2.0 * self._c(3) - dt * self._c(4)) / denom
        elif kind is FilterType.WASHOUT:
            denom = 2.0 + dt * self._c(1)
            self._ca = 2.0 / denom
            self._cb = (2.0 - dt * self._c(1)) / denom
        elif kind is FilterType.SECOND_ORDER:
            denom = 4.0 * self._c(4) + 2.0 * self._c(5) * dt + self._c(6) * dt * dt
            self._ca = (4.0 * self._c(1) + 2.0 * self._c(2) * dt + self._c(3) * dt * dt) / denom
            self._cb = (-8.0 * self._c(1) + 2.0 * self._c(3) * dt * dt) / denom
            self._cc = (4.0 * self._c(1) - 2.0 * self._c(2) * dt + self._c(3) * dt * dt) / denom
            self._cd = (-8.0 * self._c(4) + 2.0 * self._c(6) * dt * dt) / denom
            self._ce = (4.0 * self._c(4) - 2.0 * self._c(5) * dt + self._c(6) * dt * dt) / denom
        else:
            self._ca = self._c(1) * dt / 2.0

    def _initialize_state(self) -> None:
        self.initialize = True
        self.previous_input1 = self.previous_input2 = 0.0
        self.previous_output1 = self.previous_output2 = 0.0

    def reset(self) -> None:
        super().reset()
        self._initialize_state()

    def run(self) -> None:
        self.input = self.inputs[0].get_value()

        if self.initialize and self.filter_type in (
            FilterType.LAG,
            FilterType.LEAD_LAG,
            FilterType.SECOND_ORDER,
        ):
            self.previous_output1 = self.previous_input1 = self.output = self.input
            self.previous_output2 = self.previous_input2 = self.input
            self.initialize = False
        else:
            self.initialize = False
            if self.dynamic:
                try:
                    self._calculate_coefficients()
                except ZeroDivisionError:
                    # Keep the last valid coefficients
                    self.log_warning(
                        "%s: scheduled coefficients give a zero denominator", self.name
                    )
            self._step()

        self.previous_output2 = self.previous_output1
        self.previous_output1 = self.output
        self.previous_input2 = self.previous_input1
        self.previous_input1 = self.input

        self.finish()

    def _step(self) -> None:
        kind = self.filter_type
        x, x1, x2 = self.input, self.previous_input1, self.previous_input2
        y1, y2 = self.previous_output1, self.previous_output2

        if kind is FilterType.LAG:
            self.output = (x + x1) * self._ca + y1 * self._cb
        elif kind is FilterType.LEAD_LAG:
            self.output = x * self._ca + x1 * self._cb + y1 * self._cc
        elif kind is FilterType.WASHOUT:
            self.output = x * self._ca - x1 * self._ca + y1 * self._cb
        elif kind is FilterType.SECOND_ORDER:
            self.output = (
                x * self._ca + x1 * self._cb + x2 * self._cc - y1 * self._cd - y2 * self._ce
            )
        else:
            if self.trigger is not None and self.trigger.get_value() != 0.0:
                self.output = 0.0
                self.input = 0.0
            else:
                self.output = (x + x1) * self._ca + y1
