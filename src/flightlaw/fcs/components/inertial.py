"""Inertial sensors: accelerometer, gyro and magnetometer.

These sensors have no <input>; they read the vehicle state from the
property store, rotate it into the sensor frame and pick one axis:

    <accelerometer name="aero/accel-z">
      <location unit="IN"> <x>120</x> <y>0</y> <z>-20</z> </location>
      <orientation unit="DEG"> <roll>0</roll> <pitch>0</pitch> <yaw>0</yaw> </orientation>
      <axis>Z</axis>
      <noise variation="ABSOLUTE">0.05</noise>
    </accelerometer>

The result then goes through the usual sensor degradation.
"""

import numpy as np

from flightlaw.core.document import DocumentError, Element
from flightlaw.fcs.components.sensor import Sensor
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.parameter import Parameter
from flightlaw.fcs.units import convert

AXES = {"X": 0, "Y": 1, "Z": 2}

BODY_ACCEL = (
    "accelerations/a-body-x-ft_sec2",
    "accelerations/a-body-y-ft_sec2",
    "accelerations/a-body-z-ft_sec2",
)
BODY_RATE_DOT = (
    "accelerations/pdot-rad_sec2",
    "accelerations/qdot-rad_sec2",
    "accelerations/rdot-rad_sec2",
)
BODY_RATE = ("velocities/p-rad_sec", "velocities/q-rad_sec", "velocities/r-rad_sec")
CG_LOCATION = ("inertia/cg-x-in", "inertia/cg-y-in", "inertia/cg-z-in")
ATTITUDE = ("attitude/phi-rad", "attitude/theta-rad", "attitude/psi-rad")
MAGNETIC_FIELD = (
    "sensors/magnetic-field/north-nT",
    "sensors/magnetic-field/east-nT",
    "sensors/magnetic-field/down-nT",
)

# Every property an inertial sensor may read
VEHICLE_STATE_PROPERTIES = (
    BODY_ACCEL + BODY_RATE_DOT + BODY_RATE + CG_LOCATION + ATTITUDE + MAGNETIC_FIELD
)


def rotation_matrix(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Return the matrix rotating a vector into a frame given by Euler angles (radians).

    Examples:
        >>> rotation_matrix(0.0, 0.0, 0.0)
        array([[1., 0., 0.],
               [0., 1., 0.],
               [0., 0., 1.]])
    """
    cr, sr = np.cos(roll), np.sin(roll)
    cp, sp = np.cos(pitch), np.sin(pitch)
    cy, sy = np.cos(yaw), np.sin(yaw)
    return np.array(
        [
            [cp * cy, cp * sy, -sp],
            [sr * sp * cy - cr * sy, sr * sp * sy + cr * cy, sr * cp],
            [cr * sp * cy + sr * sy, cr * sp * sy - sr * cy, cr * cp],
        ]
    )


class OrientedSensor(Sensor):
    """A sensor mounted with an orientation relative to the body axes.

    Attributes:
        transform: Body to sensor frame rotation.
        axis: Index of the sensed axis (0, 1 or 2).
    """

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element, needs_input=False)

        self.transform = np.identity(3)
        orientation = element.find_element("orientation")
        if orientation is not None:
            angles = [self._angle(orientation, tag) for tag in ("roll", "pitch", "yaw")]
            self.transform = rotation_matrix(*angles)

        axis = element.find_element_value("axis").upper()
        if axis not in AXES:
            raise StructuralConfigError(
                f"{self.kind} '{self.name}' needs an <axis> of X, Y or Z, got {axis!r}"
            )
        self.axis = AXES[axis]

    def _angle(self, orientation: Element, tag: str) -> float:
        child = orientation.find_element(tag)
        if child is None:
            return 0.0
        unit = child.get_attribute_value("unit") or orientation.get_attribute_value("unit")
        unit = unit or "RAD"
        try:
            return convert(child.get_data_as_number(), unit, "RAD")
        except (DocumentError, ValueError) as e:
            raise StructuralConfigError(f"{self.name}: {e}") from e

    def _vector(self, paths: tuple[str, str, str]) -> list[Parameter]:
        return [self.make_parameter(path) for path in paths]

    @staticmethod
    def _read(parameters: list[Parameter]) -> np.ndarray:
        return np.array([p.get_value() for p in parameters])

    def sense(self, vector: np.ndarray) -> None:
        """Rotate a body-frame vector into the sensor frame and process one axis."""
        self.input = float((self.transform @ vector)[self.axis])
        self.process_sensor_signal()


class Accelerometer(OrientedSensor):
    """Specific force at a location on the airframe, gravity excluded."""

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)

        self.location = np.zeros(3)
        location = element.find_element("location")
        if location is not None:
            unit = location.get_attribute_value("unit") or "IN"
            try:
                self.location = np.array(
                    [
                        convert(location.find_element_value_as_number(tag), unit, "IN")
                        for tag in ("x", "y", "z")
                    ]
                )
            except (DocumentError, ValueError) as e:
                raise StructuralConfigError(f"{self.name}: {e}") from e

        self._accel = self._vector(BODY_ACCEL)
        self._rate_dot = self._vector(BODY_RATE_DOT)
        self._rate = self._vector(BODY_RATE)
        self._cg = self._vector(CG_LOCATION)

    def lever_arm(self) -> np.ndarray:
        """Sensor position relative to the CG in body axes, in feet.

        Structural axes point aft, right and up; body axes point forward,
        right and down.
        """
        delta = (self.location - self._read(self._cg)) / 12.0
        return np.array([-delta[0], delta[1], -delta[2]])

    def run(self) -> None:
        radius = self.lever_arm()
        rate = self._read(self._rate)
        accel = (
            self._read(self._accel)
            + np.cross(self._read(self._rate_dot), radius)
            + np.cross(rate, np.cross(rate, radius))
        )
        self.sense(accel)


class Gyro(OrientedSensor):
    """Body angular rate about one sensor axis."""

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self._rate = self._vector(BODY_RATE)

    def run(self) -> None:
        self.sense(self._read(self._rate))


class Magnetometer(OrientedSensor):
    """Local magnetic field along one sensor axis."""

    def __init__(self, fcs, element: Element) -> None:
        super().__init__(fcs, element)
        self._attitude = self._vector(ATTITUDE)
        self._field = self._vector(MAGNETIC_FIELD)

    def run(self) -> None:
        local_to_body = rotation_matrix(*self._read(self._attitude))
        self.sense(local_to_body @ self._read(self._field))
