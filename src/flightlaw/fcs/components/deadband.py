"""Deadband: suppresses small inputs.

Inside +/- width/2 the output is zero. Outside, the input is shifted
toward zero by half the width, so the output is continuous at the band
edges, then multiplied by the gain.
"""

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent


class DeadBand(FCSComponent):
    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()
        self.width = self.parameter_from(element, "width", default=0.0)
        self.gain = self.parameter_from(element, "gain", default=1.0)

    def run(self) -> None:
        self.input = self.inputs[0].get_value()
        half_width = self.width.get_value() / 2.0

        if self.input < -half_width:
            self.output = (self.input + half_width) * self.gain.get_value()
        elif self.input > half_width:
            self.output = (self.input - half_width) * self.gain.get_value()
        else:
            self.output = 0.0

        self.finish()
