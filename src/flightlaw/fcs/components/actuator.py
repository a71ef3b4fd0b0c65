"""Actuator: the mechanical link between a command and a surface.

    <actuator name="fcs/elevator-actuator">
      <input>fcs/elevator-cmd-rad</input>
      <lag>60</lag>
      <rate_limit>1.0</rate_limit>
      <rate_limit sense="decr">fcs/elevator-retract-rate</rate_limit>
      <deadband_width>0.01</deadband_width>
      <hysteresis_width>0.02</hysteresis_width>
      <bias>0.002</bias>
      <clipto>
        <min>-0.35</min>
        <max>0.30</max>
      </clipto>
      <output>fcs/elevator-pos-rad</output>
    </actuator>

Processing order: failures, lag, rate limit, deadband, hysteresis, bias,
transport delay, clipping. Failures are injected through the writable
properties <output path>/malfunction/fail_zero, fail_hardover and
fail_stuck. <output path>/saturated reports whether the output sits on a
clip limit.
"""

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter


class Actuator(FCSComponent):
    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()

        self.fail_zero = False
        self.fail_hardover = False
        self.fail_stuck = False
        self.saturated = False

        self.rate_limit_incr: Parameter | None = None
        self.rate_limit_decr: Parameter | None = None
        for rate_element in element.iter_elements("rate_limit"):
            limit = self.make_parameter(rate_element.get_data_line())
            sense = rate_element.get_attribute_value("sense")
            if sense.startswith("incr"):
                self.rate_limit_incr = limit
            elif sense.startswith("decr"):
                self.rate_limit_decr = limit
            elif not sense:
                self.rate_limit_incr = self.rate_limit_decr = limit
            else:
                raise StructuralConfigError(
                    f"actuator '{self.name}': unknown rate_limit sense {sense!r}"
                )

        self.lag = self.number_from(element, "lag", 0.0)
        self.bias = self.number_from(element, "bias", 0.0)
        self.deadband_width = self.number_from(element, "deadband_width", 0.0)
        self.hysteresis_width = self.number_from(element, "hysteresis_width", 0.0)

        self._lag_ca = self._lag_cb = 0.0
        if self.lag != 0.0:
            denom = 2.0 + self.dt * self.lag
            self._lag_ca = self.dt * self.lag / denom
            self._lag_cb = (2.0 - self.dt * self.lag) / denom

        self._clear_state()

    def _clear_state(self) -> None:
        self.initialized = False
        self.previous_output = 0.0
        self.previous_lag_input = self.previous_lag_output = 0.0
        self.previous_rate_output = 0.0
        self.previous_hysteresis_output = 0.0
        self.saturated = False

    def bind(self) -> bool:
        if not super().bind():
            return False
        base = self.output_path
        for flag in ("fail_zero", "fail_hardover", "fail_stuck"):
            self.tie_property(
                f"{base}/malfunction/{flag}",
                lambda flag=flag: getattr(self, flag),
                lambda value, flag=flag: setattr(self, flag, bool(value)),
            )
        self.tie_property(f"{base}/saturated", lambda: self.saturated)
        return True

    def reset(self) -> None:
        super().reset()
        self._clear_state()

    def run(self) -> None:
        self.input = self.inputs[0].get_value()

        if self.fail_zero:
            self.input = 0.0
        if self.fail_hardover and self.clip:
            limit = self.clip_max if self.input >= 0.0 else self.clip_min
            self.input = limit.get_value()

        self.output = self.input
        if self.fail_stuck:
            self.output = self.previous_output
        else:
            if self.lag != 0.0:
                self._apply_lag()
            if self.rate_limit_incr is not None or self.rate_limit_decr is not None:
                self._apply_rate_limit()
            if self.deadband_width != 0.0:
                self._apply_deadband()
            if self.hysteresis_width != 0.0:
                self._apply_hysteresis()
            if self.bias != 0.0:
                self.output += self.bias
            self.delay_output()

        self.previous_output = self.output
        self.initialized = True

        self.clip_output()
        if self.clip:
            vmin = self.clip_min.get_value()
            vmax = self.clip_max.get_value()
            self.saturated = (self.output >= vmax and vmax != 0.0) or (
                self.output <= vmin and vmin != 0.0
            )
        self.set_output()

    def _apply_lag(self) -> None:
        value = self.output
        if self.initialized:
            self.output = self._lag_ca * (value + self.previous_lag_input) + (
                self.previous_lag_output * self._lag_cb
            )
        self.previous_lag_input = value
        self.previous_lag_output = self.output

    def _apply_rate_limit(self) -> None:
        if self.initialized:
            delta = self.output - self.previous_rate_output
            if self.rate_limit_incr is not None:
                limit = self.rate_limit_incr.get_value()
                if delta > self.dt * limit:
                    self.output = self.previous_rate_output + limit * self.dt
            if self.rate_limit_decr is not None:
                limit = -self.rate_limit_decr.get_value()
                if delta < self.dt * limit:
                    self.output = self.previous_rate_output + limit * self.dt
        self.previous_rate_output = self.output

    def _apply_deadband(self) -> None:
        half_width = self.deadband_width / 2.0
        if self.output < -half_width:
            self.output += half_width
        elif self.output > half_width:
            self.output -= half_width
        else:
            self.output = 0.0

    def _apply_hysteresis(self) -> None:
        value = self.output
        previous = self.previous_hysteresis_output
        if self.initialized:
            if value > previous:
                self.output = max(previous, value - 0.5 * self.hysteresis_width)
            elif value < previous:
                self.output = min(previous, value + 0.5 * self.hysteresis_width)
        self.previous_hysteresis_output = self.output
