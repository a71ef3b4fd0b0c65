"""Lookup tables with linear interpolation.

Tables appear inside gains and functions:

    <table>
      <independentVar lookup="row">velocities/vc-kts</independentVar>
      <tableData>
         60  1.0
        120  0.5
        200  0.25
      </tableData>
    </table>

A two-dimensional table adds a column variable and a header row of column
breakpoints. Lookups outside the breakpoints clamp to the edge values.
"""

import numpy as np

from flightlaw.core.document import Element
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter, make_property_value


class Table:
    """A 1-D or 2-D breakpoint table.

    Attributes:
        row_var: Parameter supplying the row lookup value.
        column_var: Parameter supplying the column lookup value (2-D only).
    """

    def __init__(
        self,
        rows: np.ndarray,
        data: np.ndarray,
        row_var: Parameter | None = None,
        columns: np.ndarray | None = None,
        column_var: Parameter | None = None,
        name: str = "",
    ) -> None:
        self.name = name
        self._rows = rows
        self._data = data
        self._columns = columns
        self.row_var = row_var
        self.column_var = column_var

        if rows.size < 1:
            raise StructuralConfigError(f"Table {name!r} has no rows")
        if np.any(np.diff(rows) <= 0):
            raise StructuralConfigError(f"Table {name!r} row breakpoints must increase")
        if columns is not None and np.any(np.diff(columns) <= 0):
            raise StructuralConfigError(f"Table {name!r} column breakpoints must increase")

    @property
    def dimension(self) -> int:
        return 1 if self._columns is None else 2

    def lookup(self, row: float, column: float = 0.0) -> float:
        """Interpolate at explicit lookup values."""
        if self._columns is None:
            return float(np.interp(row, self._rows, self._data))

        # Interpolate each row at the column value, then along the rows
        along_columns = np.array(
            [np.interp(column, self._columns, self._data[i]) for i in range(self._rows.size)]
        )
        return float(np.interp(row, self._rows, along_columns))

    def get_value(self) -> float:
        """Interpolate at the current values of the lookup variables."""
        row = self.row_var.get_value() if self.row_var is not None else 0.0
        column = self.column_var.get_value() if self.column_var is not None else 0.0
        return self.lookup(row, column)


def _parse_rows(element: Element, name: str) -> list[list[float]]:
    data_element = element.find_element("tableData")
    if data_element is None:
        raise StructuralConfigError(f"Table {name!r} has no <tableData>")

    rows = []
    for line in data_element.data_lines:
        try:
            rows.append([float(token) for token in line.split()])
        except ValueError as e:
            raise StructuralConfigError(f"Table {name!r}: non-numeric entry in {line!r}") from e
    if not rows:
        raise StructuralConfigError(f"Table {name!r} has empty <tableData>")
    return rows


def load_table(element: Element, properties: PropertyStore) -> Table:
    """Build a table from a <table> element.

    Raises:
        StructuralConfigError: If the layout is inconsistent.
    """
    name = element.get_attribute_value("name")

    row_var = None
    column_var = None
    for var in element.iter_elements("independentVar"):
        lookup = var.get_attribute_value("lookup") or "row"
        param = make_property_value(var.get_data_line(), properties)
        if lookup == "row":
            row_var = param
        elif lookup == "column":
            column_var = param
        else:
            raise StructuralConfigError(f"Table {name!r}: unknown lookup {lookup!r}")

    rows = _parse_rows(element, name)

    if column_var is None:
        if any(len(r) != 2 for r in rows):
            raise StructuralConfigError(f"Table {name!r}: 1-D rows need two values each")
        array = np.array(rows)
        return Table(array[:, 0], array[:, 1], row_var=row_var, name=name)

    columns = np.array(rows[0])
    body = rows[1:]
    if not body or any(len(r) != columns.size + 1 for r in body):
        raise StructuralConfigError(
            f"Table {name!r}: 2-D rows need a key plus {columns.size} values each"
        )
    array = np.array(body)
    return Table(
        array[:, 0],
        array[:, 1:],
        row_var=row_var,
        columns=columns,
        column_var=column_var,
        name=name,
    )
