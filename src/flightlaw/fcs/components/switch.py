"""Switch: selects a value from the first passing test.

    <switch name="fcs/ap-roll-select">
      <default value="0.0"/>
      <test logic="AND" value="ap/roll-hold-cmd">
        ap/attitude-hold == 1
        ap/master GE 1
      </test>
      <test value="-fcs/wing-leveler-cmd">
        ap/wing-leveler == 1
      </test>
    </switch>

Tests are evaluated in document order. When none passes the default is
used; without a default the output keeps its previous value. A component
delay debounces the switch.
"""

from dataclasses import dataclass

from flightlaw.core.document import Element
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.condition import Condition
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter


@dataclass
class SwitchTest:
    condition: Condition
    value: Parameter


class Switch(FCSComponent):
    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)

        self.default: Parameter | None = None
        default_element = element.find_element("default")
        if default_element is not None:
            self.default = self._value_of(default_element)

        self.tests: list[SwitchTest] = []
        for test_element in element.iter_elements("test"):
            condition = Condition(test_element, self.properties)
            self.tests.append(SwitchTest(condition, self._value_of(test_element)))
            for path in condition.property_paths():
                self.make_parameter(path)

        if not self.tests and self.default is None:
            raise StructuralConfigError(f"switch '{self.name}' has neither tests nor a default")

    def _value_of(self, element: Element) -> Parameter:
        value = element.get_attribute_value("value")
        if not value:
            raise StructuralConfigError(f"switch '{self.name}': <{element.name}> has no value")
        return self.make_parameter(value)

    def run(self) -> None:
        for test in self.tests:
            if test.condition.evaluate():
                self.output = test.value.get_value()
                break
        else:
            if self.default is not None:
                self.output = self.default.get_value()

        self.finish()
