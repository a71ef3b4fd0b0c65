"""FCS function: a component whose output is a configured function."""

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.function import Function


class FCSFunction(FCSComponent):
    """Outputs the value of its <function>, times the input when one is given."""

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)

        function_element = element.find_element("function")
        if function_element is None:
            raise StructuralConfigError(f"fcs_function '{self.name}' has no <function>")
        self.function = Function(function_element, self.properties)

    def run(self) -> None:
        self.output = self.function.run()
        if self.inputs:
            self.input = self.inputs[0].get_value()
            self.output *= self.input
        self.finish()
