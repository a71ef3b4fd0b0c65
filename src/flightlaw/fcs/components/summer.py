"""Summer: adds any number of inputs and an optional bias."""

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent


class Summer(FCSComponent):
    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self.require_inputs()
        self.bias = self.number_from(element, "bias", 0.0)

    def run(self) -> None:
        self.output = sum(p.get_value() for p in self.inputs) + self.bias
        self.finish()
