"""Aircraft container and YAML builder.

Typical usage:
    from flightlaw.aircraft import AircraftBuilder

    aircraft = AircraftBuilder().build("aircraft/trainer/trainer.yaml")
"""

from flightlaw.aircraft.aircraft import Aircraft
from flightlaw.aircraft.builder import AircraftBuilder
from flightlaw.fcs.flight_control import BrakeGroup, GearUnit

__all__ = [
    "Aircraft",
    "AircraftBuilder",
    "BrakeGroup",
    "GearUnit",
]
