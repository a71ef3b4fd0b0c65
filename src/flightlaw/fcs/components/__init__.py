"""Flight control component kinds.

Typical usage:
    from flightlaw.fcs.components import create_component_registry

    registry = create_component_registry()
    component = registry.create("pure_gain", fcs, element)
"""

from flightlaw.core.registry import ComponentRegistry
from flightlaw.fcs.components.actuator import Actuator
from flightlaw.fcs.components.base import FCSComponent
from flightlaw.fcs.components.deadband import DeadBand
from flightlaw.fcs.components.fcs_function import FCSFunction
from flightlaw.fcs.components.filter import Filter, FilterType
from flightlaw.fcs.components.gain import Gain
from flightlaw.fcs.components.inertial import Accelerometer, Gyro, Magnetometer
from flightlaw.fcs.components.kinemat import Kinemat
from flightlaw.fcs.components.pid import PID
from flightlaw.fcs.components.sensor import Sensor
from flightlaw.fcs.components.summer import Summer
from flightlaw.fcs.components.switch import Switch

COMPONENT_TAGS: dict[str, type[FCSComponent]] = {
    **{kind.value: Filter for kind in FilterType},
    "pure_gain": Gain,
    "scheduled_gain": Gain,
    "aerosurface_scale": Gain,
    "summer": Summer,
    "deadband": DeadBand,
    "switch": Switch,
    "kinematic": Kinemat,
    "fcs_function": FCSFunction,
    "pid": PID,
    "actuator": Actuator,
    "sensor": Sensor,
    "accelerometer": Accelerometer,
    "magnetometer": Magnetometer,
    "gyro": Gyro,
}


def create_component_registry() -> ComponentRegistry:
    """Build a registry holding every built-in component kind."""
    registry = ComponentRegistry()
    for tag, component_class in COMPONENT_TAGS.items():
        registry.register(tag, component_class)
    return registry


__all__ = [
    "COMPONENT_TAGS",
    "Accelerometer",
    "Actuator",
    "DeadBand",
    "FCSComponent",
    "FCSFunction",
    "Filter",
    "FilterType",
    "Gain",
    "Gyro",
    "Kinemat",
    "Magnetometer",
    "PID",
    "Sensor",
    "Summer",
    "Switch",
    "create_component_registry",
]
