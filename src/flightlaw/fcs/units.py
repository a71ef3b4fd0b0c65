"""Angle registers and unit conversion.

Control surface positions are exposed in several forms at once: radians,
degrees, a normalized travel fraction, and the magnitude of the angle.
Radians, degrees and magnitude are the same physical angle and always move
together. The normalized form is a separate scale written by whoever
produces it (usually an aerosurface_scale component) and is never derived
from the angle.

Typical usage example:
    from flightlaw.fcs.units import AngleForm, SurfaceRegister

    elevator = SurfaceRegister("elevator")
    elevator.set(AngleForm.DEGREES, -5.0)
    elevator.get(AngleForm.RADIANS)     # -0.0873
    elevator.get(AngleForm.MAGNITUDE)   # 0.0873
"""

import math
from dataclasses import dataclass
from enum import Enum

RADTODEG = 180.0 / math.pi
DEGTORAD = math.pi / 180.0

# Factors to a base unit per dimension (radians, feet)
_ANGLE_UNITS = {"RAD": 1.0, "DEG": DEGTORAD}
_LENGTH_UNITS = {"FT": 1.0, "IN": 1.0 / 12.0, "M": 1.0 / 0.3048}


class AngleForm(Enum):
    """Representations held by a SurfaceRegister."""

    RADIANS = "rad"
    DEGREES = "deg"
    NORMALIZED = "norm"
    MAGNITUDE = "mag"


@dataclass(frozen=True)
class Angle:
    """An angle tagged with its unit.

    Attributes:
        value: Numeric value.
        unit: AngleForm.RADIANS or AngleForm.DEGREES.
    """

    value: float
    unit: AngleForm = AngleForm.RADIANS

    def __post_init__(self) -> None:
        if self.unit not in (AngleForm.RADIANS, AngleForm.DEGREES):
            raise ValueError(f"An angle is expressed in radians or degrees, not {self.unit.name}")

    @property
    def radians(self) -> float:
        if self.unit is AngleForm.RADIANS:
            return self.value
        return self.value * DEGTORAD

    @property
    def degrees(self) -> float:
        if self.unit is AngleForm.DEGREES:
            return self.value
        return self.value * RADTODEG


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a configuration value between units of the same dimension.

    Args:
        value: Value expressed in from_unit.
        from_unit: Source unit ("RAD", "DEG", "FT", "IN", "M"); case-insensitive.
        to_unit: Target unit.

    Returns:
        The value expressed in to_unit.

    Raises:
        ValueError: If a unit is unknown or the dimensions differ.

    Examples:
        >>> convert(180.0, "DEG", "RAD")
        3.141592653589793
        >>> convert(24.0, "IN", "FT")
        2.0
    """
    source = from_unit.strip().upper()
    target = to_unit.strip().upper()
    if source == target:
        return value

    for table in (_ANGLE_UNITS, _LENGTH_UNITS):
        if source in table and target in table:
            return value * table[source] / table[target]

    raise ValueError(f"Cannot convert from {from_unit!r} to {to_unit!r}")


class SurfaceRegister:
    """A control surface position held in radians, degrees and normalized form.

    Examples:
        >>> reg = SurfaceRegister("rudder")
        >>> reg.set(AngleForm.RADIANS, -0.2)
        >>> reg.get(AngleForm.MAGNITUDE)
        0.2
        >>> reg.set(AngleForm.NORMALIZED, 0.5)
        >>> reg.get(AngleForm.RADIANS)
        -0.2
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._rad = 0.0
        self._deg = 0.0
        self._mag = 0.0
        self._norm = 0.0

    def set(self, form: AngleForm, value: float) -> None:
        """Write one representation.

        Radians and degrees update radians, degrees and magnitude together.
        Normalized updates only the normalized slot.

        Raises:
            ValueError: If form is MAGNITUDE, which is derived and read-only.
        """
        value = float(value)
        if form is AngleForm.RADIANS:
            self.set_angle(Angle(value, AngleForm.RADIANS))
        elif form is AngleForm.DEGREES:
            self.set_angle(Angle(value, AngleForm.DEGREES))
        elif form is AngleForm.NORMALIZED:
            self._norm = value
        else:
            raise ValueError(f"{self.name}: {form.name} is read-only")

    def set_angle(self, angle: Angle) -> None:
        rad = angle.radians
        self._rad, self._deg, self._mag = rad, angle.degrees, abs(rad)

    def get(self, form: AngleForm) -> float:
        if form is AngleForm.RADIANS:
            return self._rad
        if form is AngleForm.DEGREES:
            return self._deg
        if form is AngleForm.NORMALIZED:
            return self._norm
        return self._mag

    def reset(self) -> None:
        self._rad = self._deg = self._mag = self._norm = 0.0

    def __repr__(self) -> str:
        return f"SurfaceRegister({self.name!r}, rad={self._rad:.6g}, norm={self._norm:.6g})"
