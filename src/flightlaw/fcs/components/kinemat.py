"""Kinematic: rate-limited travel through detent positions.

    <kinematic name="Flaps Control">
      <input>fcs/flap-cmd-norm</input>
      <traverse>
        <setting> <position>0</position>  <time>0</time> </setting>
        <setting> <position>15</position> <time>4</time> </setting>
        <setting> <position>30</position> <time>3</time> </setting>
      </traverse>
      <output>fcs/flap-pos-deg</output>
    </kinematic>

Each setting's time is how long moving from the previous detent to it
takes; a time of zero moves instantly. The input is a normalized command
scaled onto the last detent unless <noscale/> is present, in which case it
is already in detent units. The output is always in detent units.
"""

import math

from flightlaw.core.document import DocumentError, Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError


class Kinemat(FCSComponent):
    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()

        self.detents: list[float] = []
        self.transition_times: list[float] = []
        traverse = element.find_element("traverse")
        if traverse is not None:
            try:
                for setting in traverse.iter_elements("setting"):
                    self.detents.append(setting.find_element_value_as_number("position"))
                    self.transition_times.append(setting.find_element_value_as_number("time"))
            except DocumentError as e:
                raise StructuralConfigError(f"kinematic '{self.name}': {e}") from e

        if len(self.detents) < 2:
            raise StructuralConfigError(
                f"kinematic '{self.name}' needs at least two <setting> detents"
            )
        if any(b <= a for a, b in zip(self.detents, self.detents[1:])):
            raise StructuralConfigError(f"kinematic '{self.name}': detents must increase")

        self.scale = element.find_element("noscale") is None
        self._position = 0.0

    def reset(self) -> None:
        super().reset()
        self._position = 0.0

    def run(self) -> None:
        first, last = self.detents[0], self.detents[-1]
        target = self.inputs[0].get_value()
        if self.scale:
            target *= last
        self.input = min(max(target, first), last)

        remaining = self.dt
        position = self._position
        while remaining > 0.0 and not math.isclose(self.input, position, abs_tol=1e-12):
            moving_down = self.input < position
            index = 1
            while index < len(self.detents) - 1 and (
                self.detents[index] < position if moving_down else self.detents[index] <= position
            ):
                index += 1

            travel_time = self.transition_times[index]
            if travel_time <= 0.0:
                position = self.input
                break

            rate = (self.detents[index] - self.detents[index - 1]) / travel_time
            segment_target = min(max(self.input, self.detents[index - 1]), self.detents[index])
            needed = abs(segment_target - position) / rate
            if needed > remaining:
                step = remaining * rate
                position += step if position < self.input else -step
                remaining = 0.0
            else:
                position = segment_target
                remaining -= needed

        self._position = position
        self.output = position
        self.finish()
