"""PID controller.

    <pid name="fcs/heading-pid">
      <input>fcs/heading-error-rad</input>
      <kp>1.0</kp>
      <ki>ap/heading-ki</ki>
      <kd>0.1</kd>
      <trigger>fcs/heading-windup</trigger>
      <reset>ap/heading-reset</reset>
      <integ_type>trap</integ_type>
    </pid>

A non-zero trigger freezes the integrator (anti-windup); a non-zero reset
clears it. With <pvdot> the derivative term uses that property instead of
differencing the input.
"""

from enum import Enum

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter

TRIGGER_THRESHOLD = 1e-6


class IntegrationType(Enum):
    """Integration schemes for the integral term."""

    RECTANGULAR = "rect"
    TRAPEZOIDAL = "trap"
    ADAMS_BASHFORTH_2 = "ab2"
    ADAMS_BASHFORTH_3 = "ab3"


class PID(FCSComponent):
    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()

        self.kp = self.parameter_from(element, "kp", default=0.0)
        self.ki = self.parameter_from(element, "ki", default=0.0)
        self.kd = self.parameter_from(element, "kd", default=0.0)
        self.trigger: Parameter | None = self.parameter_from(element, "trigger")
        self.reset_parameter: Parameter | None = self.parameter_from(element, "reset")
        self.pvdot: Parameter | None = self.parameter_from(element, "pvdot")

        integ_type = element.find_element_value("integ_type") or "rect"
        try:
            self.integration = IntegrationType(integ_type.strip().lower())
        except ValueError as e:
            raise StructuralConfigError(
                f"pid '{self.name}': unknown integration type {integ_type!r}"
            ) from e

        self._clear_state()

    def _clear_state(self) -> None:
        self.integral = 0.0
        self.previous_input = 0.0
        self.previous_input2 = 0.0

    def reset(self) -> None:
        super().reset()
        self._clear_state()

    def run(self) -> None:
        self.input = self.inputs[0].get_value()
        dt = self.dt

        if self.pvdot is not None:
            derivative = self.pvdot.get_value()
        elif dt > 0.0:
            derivative = (self.input - self.previous_input) / dt
        else:
            derivative = 0.0

        windup = self.trigger is not None and abs(self.trigger.get_value()) >= TRIGGER_THRESHOLD
        if not windup:
            self.integral += self.ki.get_value() * self._integrate(dt)

        if self.reset_parameter is not None and self.reset_parameter.get_value() != 0.0:
            self.integral = 0.0

        proportional = self.kp.get_value() * self.input
        self.output = proportional + self.integral + self.kd.get_value() * derivative

        self.previous_input2 = self.previous_input
        self.previous_input = self.input

        self.finish()

    def _integrate(self, dt: float) -> float:
        x, x1, x2 = self.input, self.previous_input, self.previous_input2
        if self.integration is IntegrationType.TRAPEZOIDAL:
            return dt * (x + x1) / 2.0
        if self.integration is IntegrationType.ADAMS_BASHFORTH_2:
            return dt * (1.5 * x - 0.5 * x1)
        if self.integration is IntegrationType.ADAMS_BASHFORTH_3:
            return dt * (23.0 * x - 16.0 * x1 + 5.0 * x2) / 12.0
        return dt * x
