"""Logical tests used by switch components.

A test group combines comparison lines and nested groups:

    <test logic="OR" value="fcs/roll-cmd-norm">
      ap/attitude-hold == 1
      <test logic="AND">
        ap/heading-hold EQ 1
        velocities/vc-kts GT 60
      </test>
    </test>

Both sides of a comparison may be a property or a number.
"""

import operator
from collections.abc import Callable

from flightlaw.core.document import Element
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter, make_parameter

_COMPARISONS: dict[str, Callable[[float, float], bool]] = {
    "EQ": operator.eq,
    "==": operator.eq,
    "NE": operator.ne,
    "!=": operator.ne,
    "GT": operator.gt,
    ">": operator.gt,
    "GE": operator.ge,
    ">=": operator.ge,
    "LT": operator.lt,
    "<": operator.lt,
    "LE": operator.le,
    "<=": operator.le,
}


class Comparison:
    """One "left OP right" line."""

    def __init__(self, line: str, properties: PropertyStore) -> None:
        tokens = line.split()
        if len(tokens) != 3:
            raise StructuralConfigError(f"Malformed condition {line!r}: expected 'left OP right'")

        left, op, right = tokens
        compare = _COMPARISONS.get(op.upper())
        if compare is None:
            raise StructuralConfigError(f"Unknown comparison {op!r} in condition {line!r}")

        self.text = line
        self._left: Parameter = make_parameter(left, properties)
        self._right: Parameter = make_parameter(right, properties)
        self._compare = compare

    def evaluate(self) -> bool:
        return self._compare(self._left.get_value(), self._right.get_value())

    def property_paths(self) -> list[str]:
        return [p.path for p in (self._left, self._right) if not p.is_constant()]


class Condition:
    """An AND/OR group of comparisons and nested groups."""

    def __init__(self, element: Element, properties: PropertyStore) -> None:
        logic = (element.get_attribute_value("logic") or "AND").upper()
        if logic not in ("AND", "OR"):
            raise StructuralConfigError(f"Unknown logic {logic!r} in <{element.name}>")

        self.logic = logic
        self._terms: list[Comparison | Condition] = [
            Comparison(line, properties) for line in element.data_lines
        ]
        for child in element.children:
            if child.name in ("test", "condition"):
                self._terms.append(Condition(child, properties))

        if not self._terms:
            raise StructuralConfigError(f"Empty <{element.name}> condition")

    def evaluate(self) -> bool:
        if self.logic == "AND":
            return all(term.evaluate() for term in self._terms)
        return any(term.evaluate() for term in self._terms)

    def property_paths(self) -> list[str]:
        paths: list[str] = []
        for term in self._terms:
            paths.extend(term.property_paths())
        return paths
