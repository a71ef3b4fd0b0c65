"""Indexed register sets: one slot per engine, gear unit or brake group.

A family groups parallel arrays that always grow together, e.g. adding an
engine appends a throttle command, a throttle position, a mixture command
and so on in one step. Every access is bounds-checked with one rule for all
families and fields:

- a negative index on a write broadcasts the value to every slot;
- a negative index on a read is invalid: logged, the field default returned;
- an index past the end is logged and ignored (reads return the default).

Misconfigured callers therefore never abort a simulation frame.

Typical usage example:
    engines = IndexedRegisterSet("engine", {"throttle_cmd": 0.0, "feather_cmd": False})
    engines.add_unit()
    engines.add_unit()
    engines.set("throttle_cmd", -1, 0.5)   # both engines
    engines.get("throttle_cmd", 1)         # 0.5
"""

import logging
from collections.abc import Collection, Mapping

logger = logging.getLogger(__name__)

Scalar = float | bool


class IndexedRegisterSet:
    """Parallel per-unit arrays of scalar registers.

    Attributes:
        family: Human-readable family name used in log messages.
    """

    def __init__(self, family: str, fields: Mapping[str, Scalar]) -> None:
        """Initialize an empty family.

        Args:
            family: Family name (e.g., "engine").
            fields: Field name to default value; the default's type (bool or
                float) is the field's type.
        """
        if not fields:
            raise ValueError("A register family needs at least one field")
        self.family = family
        self._defaults: dict[str, Scalar] = dict(fields)
        self._slots: dict[str, list[Scalar]] = {name: [] for name in fields}
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def fields(self) -> list[str]:
        return list(self._defaults)

    def add_unit(self) -> int:
        """Append one default-initialized slot to every field.

        Returns:
            Index of the new unit.
        """
        for name, default in self._defaults.items():
            self._slots[name].append(default)
        self._count += 1
        return self._count - 1

    def clear(self) -> None:
        """Remove every unit."""
        for values in self._slots.values():
            values.clear()
        self._count = 0

    def set(self, field: str, index: int, value: Scalar) -> bool:
        """Write one slot, or every slot when index is negative.

        Returns:
            True if anything was written.
        """
        values = self._field(field)
        value = self._coerce(field, value)

        if index < 0:
            for i in range(self._count):
                values[i] = value
            return True

        if index >= self._count:
            logger.error(
                "%s %d does not exist! %d %ss exist, but %s was commanded for %s %d",
                self.family.capitalize(),
                index,
                self._count,
                self.family,
                field,
                self.family,
                index,
            )
            return False

        values[index] = value
        return True

    def get(self, field: str, index: int) -> Scalar:
        """Read one slot.

        Returns:
            The slot value, or the field default for an invalid index.
        """
        values = self._field(field)

        if index < 0:
            logger.error("Cannot get %s for ALL %ss", field, self.family)
            return self._defaults[field]

        if index >= self._count:
            logger.error(
                "%s %d does not exist! %d %ss exist, but %s was read for %s %d",
                self.family.capitalize(),
                index,
                self._count,
                self.family,
                field,
                self.family,
                index,
            )
            return self._defaults[field]

        return values[index]

    def values(self, field: str) -> list[Scalar]:
        """Return a copy of one field's array."""
        return list(self._field(field))

    def copy_field(self, source: str, target: str, skip: Collection[int] | None = None) -> None:
        """Copy every slot of one field into another, except skipped indices."""
        src = self._field(source)
        dst = self._field(target)
        for i in range(self._count):
            if skip and i in skip:
                continue
            dst[i] = self._coerce(target, src[i])

    def zero(self) -> None:
        """Set every slot of every field to zero (False for boolean fields)."""
        for name, values in self._slots.items():
            zero = False if isinstance(self._defaults[name], bool) else 0.0
            for i in range(self._count):
                values[i] = zero

    def _field(self, field: str) -> list[Scalar]:
        try:
            return self._slots[field]
        except KeyError:
            raise KeyError(f"{self.family} registers have no field {field!r}") from None

    def _coerce(self, field: str, value: Scalar) -> Scalar:
        if isinstance(self._defaults[field], bool):
            return bool(value)
        return float(value)

    def __repr__(self) -> str:
        return f"IndexedRegisterSet({self.family!r}, units={self._count}, fields={self.fields})"
