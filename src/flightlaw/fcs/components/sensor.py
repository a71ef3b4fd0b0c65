"""Sensor: degrades a perfect signal the way real instruments do.

    <sensor name="aero/qbar-sensor">
      <input>aero/qbar-psf</input>
      <lag>50</lag>
      <noise variation="PERCENT" distribution="GAUSSIAN">0.02</noise>
      <drift_rate>0.001</drift_rate>
      <gain>1.0</gain>
      <bias>0.5</bias>
      <quantization>
        <bits>12</bits>
        <min>0</min>
        <max>400</max>
      </quantization>
    </sensor>

Processing order: lag, noise, drift, gain, bias, transport delay,
failures, quantization, clipping. Failures are injected through writable
properties under <output path>/malfunction/: fail_low and fail_high pin the
output to -inf and +inf, fail_stuck freezes it.
"""

import math
from enum import Enum

from flightlaw.core.document import DocumentError, Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError


class NoiseType(Enum):
    PERCENT = "PERCENT"
    ABSOLUTE = "ABSOLUTE"


class DistributionType(Enum):
    UNIFORM = "UNIFORM"
    GAUSSIAN = "GAUSSIAN"


class Sensor(FCSComponent):
    """Signal degradation shared by every sensor kind.

    Attributes:
        fail_low: Output pinned to -inf while set.
        fail_high: Output pinned to +inf while set.
        fail_stuck: Output frozen while set.
    """

    def __init__(self, fcs, element: Element, needs_input: bool = True) -> None:
        super().__init__(fcs, element)
        if needs_input:
            self.require_inputs()

        self.fail_low = False
        self.fail_high = False
        self.fail_stuck = False

        self.bias = self.number_from(element, "bias", 0.0)
        self.gain = self.number_from(element, "gain", 0.0)
        self.drift_rate = self.number_from(element, "drift_rate", 0.0)
        self.lag = self.number_from(element, "lag", 0.0)
        self.drift = 0.0

        self.noise_variance = 0.0
        self.noise_type = NoiseType.PERCENT
        self.distribution = DistributionType.UNIFORM
        noise_element = element.find_element("noise")
        if noise_element is not None:
            self._load_noise(noise_element)

        self.bits = 0
        self.quant_min = self.quant_max = self.granularity = 0.0
        quantization = element.find_element("quantization")
        if quantization is not None:
            self._load_quantization(quantization)

        self._lag_ca = self._lag_cb = 0.0
        if self.lag != 0.0:
            denom = 2.0 + self.dt * self.lag
            self._lag_ca = self.dt * self.lag / denom
            self._lag_cb = (2.0 - self.dt * self.lag) / denom

        self.previous_input = 0.0
        self.previous_output = 0.0

    def _load_noise(self, element: Element) -> None:
        try:
            self.noise_variance = element.get_data_as_number()
            self.noise_type = NoiseType(
                element.get_attribute_value("variation").upper() or "PERCENT"
            )
            self.distribution = DistributionType(
                element.get_attribute_value("distribution").upper() or "UNIFORM"
            )
        except DocumentError as e:
            raise StructuralConfigError(f"sensor '{self.name}': {e}") from e
        except ValueError as e:
            raise StructuralConfigError(f"sensor '{self.name}': bad noise setting ({e})") from e

    def _load_quantization(self, element: Element) -> None:
        try:
            bits = element.find_element_value_as_number("bits")
            self.quant_min = element.find_element_value_as_number("min")
            self.quant_max = element.find_element_value_as_number("max")
        except DocumentError as e:
            raise StructuralConfigError(f"sensor '{self.name}': {e}") from e
        finite_range = math.isfinite(self.quant_min) and math.isfinite(self.quant_max)
        if not 1 <= bits <= 64 or not finite_range or self.quant_max <= self.quant_min:
            raise StructuralConfigError(f"sensor '{self.name}': invalid quantization")
        self.bits = int(bits)
        self.granularity = (self.quant_max - self.quant_min) / (1 << self.bits)

    def bind(self) -> bool:
        if not super().bind():
            return False
        base = self.output_path
        for flag in ("fail_low", "fail_high", "fail_stuck"):
            self.tie_property(
                f"{base}/malfunction/{flag}",
                lambda flag=flag: getattr(self, flag),
                lambda value, flag=flag: setattr(self, flag, bool(value)),
            )
        return True

    def reset(self) -> None:
        super().reset()
        self.drift = 0.0
        self.previous_input = 0.0
        self.previous_output = 0.0

    def run(self) -> None:
        self.input = self.inputs[0].get_value()
        self.process_sensor_signal()

    def process_sensor_signal(self) -> None:
        """Degrade self.input into self.output and publish it."""
        if self.fail_stuck:
            self.set_output()
            return

        self.output = self.input
        if self.lag != 0.0:
            self.output = self._lag_ca * (self.output + self.previous_input) + (
                self.previous_output * self._lag_cb
            )
        if self.noise_variance != 0.0:
            self._apply_noise()
        if self.drift_rate != 0.0:
            self.drift += self.drift_rate * self.dt
            self.output += self.drift
        if self.gain != 0.0:
            self.output *= self.gain
        if self.bias != 0.0:
            self.output += self.bias

        self.previous_input = self.input
        self.previous_output = self.output

        self.delay_output()
        if self.fail_low:
            self.output = float("-inf")
        if self.fail_high:
            self.output = float("inf")
        if self.bits:
            self._quantize()
        self.clip_output()
        self.set_output()

    def _apply_noise(self) -> None:
        if self.distribution is DistributionType.GAUSSIAN:
            sample = float(self.fcs.rng.standard_normal())
        else:
            sample = float(self.fcs.rng.uniform(-1.0, 1.0))

        if self.noise_type is NoiseType.PERCENT:
            self.output *= 1.0 + self.noise_variance * sample
        else:
            self.output += self.noise_variance * sample

    def _quantize(self) -> None:
        if math.isnan(self.output):
            return
        value = min(max(self.output, self.quant_min), self.quant_max)
        steps = int((value - self.quant_min) / self.granularity)
        self.output = steps * self.granularity + self.quant_min
