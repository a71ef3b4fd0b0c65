"""Algebraic functions defined in configuration.

A <function> element holds exactly one expression built from nested
operation elements:

    <function name="systems/stall-warn-norm">
      <product>
        <value>0.5</value>
        <property>aero/alpha-deg</property>
        <table> ... </table>
      </product>
    </function>

Named functions publish their last value as a read-only property. Every
operation is total: domain errors yield inf or nan instead of raising, so
evaluating a function inside a frame never throws.
"""

import logging
import math
from collections.abc import Callable

from flightlaw.core.document import DocumentError, Element
from flightlaw.core.properties import PropertyError, PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import make_property_value
from flightlaw.fcs.table import load_table

logger = logging.getLogger(__name__)

Expression = Callable[[], float]


def _quotient(a: float, b: float) -> float:
    if b == 0.0:
        return math.copysign(math.inf, a) if a != 0.0 else math.nan
    return a / b


def _pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except (ValueError, OverflowError):
        return math.nan


def _log(x: float, base_fn: Callable[[float], float]) -> float:
    if x <= 0.0:
        return -math.inf if x == 0.0 else math.nan
    return base_fn(x)


def _clamp_unit(x: float) -> float:
    return max(-1.0, min(1.0, x))


def _mod(a: float, b: float) -> float:
    if b == 0.0 or math.isinf(a):
        return math.nan
    return math.fmod(a, b)


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


# name -> (minimum argument count, maximum argument count or None, implementation)
_OPERATIONS: dict[str, tuple[int, int | None, Callable[[list[float]], float]]] = {
    "sum": (1, None, sum),
    "difference": (1, None, lambda a: a[0] - sum(a[1:])),
    "product": (1, None, lambda a: math.prod(a)),
    "quotient": (2, 2, lambda a: _quotient(a[0], a[1])),
    "pow": (2, 2, lambda a: _pow(a[0], a[1])),
    "exp": (1, 1, lambda a: _exp(a[0])),
    "ln": (1, 1, lambda a: _log(a[0], math.log)),
    "log10": (1, 1, lambda a: _log(a[0], math.log10)),
    "abs": (1, 1, lambda a: abs(a[0])),
    "sin": (1, 1, lambda a: math.sin(a[0])),
    "cos": (1, 1, lambda a: math.cos(a[0])),
    "tan": (1, 1, lambda a: math.tan(a[0])),
    "asin": (1, 1, lambda a: math.asin(_clamp_unit(a[0]))),
    "acos": (1, 1, lambda a: math.acos(_clamp_unit(a[0]))),
    "atan": (1, 1, lambda a: math.atan(a[0])),
    "atan2": (2, 2, lambda a: math.atan2(a[0], a[1])),
    "min": (1, None, lambda a: min(a)),
    "max": (1, None, lambda a: max(a)),
    "avg": (1, None, lambda a: sum(a) / len(a)),
    "fraction": (1, 1, lambda a: math.modf(a[0])[0]),
    "integer": (1, 1, lambda a: float(math.trunc(a[0])) if math.isfinite(a[0]) else a[0]),
    "mod": (2, 2, lambda a: _mod(a[0], a[1])),
    "sign": (1, 1, lambda a: math.copysign(1.0, a[0])),
    "toradians": (1, 1, lambda a: math.radians(a[0])),
    "todegrees": (1, 1, lambda a: math.degrees(a[0])),
    "lt": (2, 2, lambda a: float(a[0] < a[1])),
    "le": (2, 2, lambda a: float(a[0] <= a[1])),
    "gt": (2, 2, lambda a: float(a[0] > a[1])),
    "ge": (2, 2, lambda a: float(a[0] >= a[1])),
    "eq": (2, 2, lambda a: float(a[0] == a[1])),
    "nq": (2, 2, lambda a: float(a[0] != a[1])),
    "and": (1, None, lambda a: float(all(x != 0.0 for x in a))),
    "or": (1, None, lambda a: float(any(x != 0.0 for x in a))),
    "not": (1, 1, lambda a: float(a[0] == 0.0)),
    "ifthen": (3, 3, lambda a: a[1] if a[0] != 0.0 else a[2]),
}

_ALIASES = {"p": "property", "v": "value", "t": "table"}


def build_expression(element: Element, properties: PropertyStore) -> Expression:
    """Compile one operation element into a zero-argument callable.

    Raises:
        StructuralConfigError: If the element is not a known operation or
            has the wrong number of arguments.
    """
    tag = _ALIASES.get(element.name, element.name)

    if tag == "property":
        param = make_property_value(element.get_data_line(), properties)
        return param.get_value

    if tag == "value":
        try:
            constant = element.get_data_as_number()
        except DocumentError as e:
            raise StructuralConfigError(str(e)) from e
        return lambda: constant

    if tag == "table":
        return load_table(element, properties).get_value

    if tag not in _OPERATIONS:
        raise StructuralConfigError(f"Unknown function operation <{element.name}>")

    low, high, implementation = _OPERATIONS[tag]
    arguments = [build_expression(child, properties) for child in element.children]
    if len(arguments) < low or (high is not None and len(arguments) > high):
        expected = str(low) if low == high else f"at least {low}"
        raise StructuralConfigError(
            f"<{tag}> takes {expected} argument(s), got {len(arguments)}"
        )

    if tag == "ifthen":
        condition, then_branch, else_branch = arguments
        return lambda: then_branch() if condition() != 0.0 else else_branch()

    return lambda: implementation([argument() for argument in arguments])


class Function:
    """A compiled <function> element.

    Attributes:
        name: Property path the value is published under ("" if unnamed).
        value: Value computed by the last run().
    """

    def __init__(self, element: Element, properties: PropertyStore) -> None:
        """Compile a function element.

        Raises:
            StructuralConfigError: If the element does not hold exactly one
                valid expression, or its name is already a bound property.
        """
        self.name = element.get_attribute_value("name")
        self.value = 0.0
        self._properties = properties
        self._bound = False

        if element.get_num_elements() != 1:
            raise StructuralConfigError(
                f"Function {self.name!r} must hold exactly one expression, "
                f"found {element.get_num_elements()}"
            )
        self._expression = build_expression(element.get_element(0), properties)

    def bind(self) -> None:
        """Publish the value as a read-only property when the function is named."""
        if not self.name or self._bound:
            return
        try:
            self._properties.tie(self.name, lambda: self.value)
        except PropertyError as e:
            raise StructuralConfigError(f"Function {self.name}: {e}") from e
        self._bound = True

    def unbind(self) -> None:
        if self._bound:
            self._properties.untie(self.name)
            self._bound = False

    def get_value(self) -> float:
        """Evaluate without caching."""
        return self._expression()

    def run(self) -> float:
        """Evaluate and cache the value."""
        self.value = self._expression()
        return self.value

    def __repr__(self) -> str:
        return f"Function({self.name!r})"
