"""Aircraft container tying a property store to a flight control engine.

The Aircraft owns the property store the simulation shares, the flight
control engine bound to it, and the engine and gear units that size the
engine's indexed registers. It also creates the vehicle state properties
inertial sensors read, so a host that never writes them still gets zeros.

Typical usage:
    aircraft = Aircraft("Trainer", delta_t=1.0 / 120.0)
    aircraft.add_engine()
    aircraft.add_gear(GearUnit("nose", steerable=True, max_steer_deg=60.0))
    aircraft.load_system_file("autopilot", SystemKind.AUTOPILOT)
    aircraft.run()
"""

from pathlib import Path
from typing import Any

from flightlaw.core.document import Element
from flightlaw.core.logging_system import get_logger
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.components.inertial import VEHICLE_STATE_PROPERTIES
from flightlaw.fcs.flight_control import (
    FlightControlSystem,
    GearUnit,
    SystemKind,
    TickResult,
)
from flightlaw.fcs.model import DEFAULT_DELTA_T

logger = get_logger(__name__)


class Aircraft:
    """One simulated aircraft as the control laws see it.

    Examples:
        >>> aircraft = Aircraft("Trainer")
        >>> aircraft.add_engine()
        0
        >>> aircraft.set_property("fcs/throttle-cmd-norm", 0.7)
        >>> aircraft.run()
        <TickResult.EXECUTED: 'executed'>
        >>> aircraft.get_property("fcs/throttle-pos-norm")
        0.7
    """

    def __init__(
        self,
        name: str,
        properties: PropertyStore | None = None,
        delta_t: float = DEFAULT_DELTA_T,
        rate: int = 1,
        random_seed: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize aircraft.

        Args:
            name: Aircraft name.
            properties: Shared property store; a new one is created when None.
            delta_t: Simulation frame time step, in seconds.
            rate: Run the control laws once every `rate` frames.
            random_seed: Seed of the sensor noise generator.
            metadata: Optional free-form metadata (manufacturer, etc.).
        """
        self.name = name
        self.metadata = metadata or {}
        self.properties = properties if properties is not None else PropertyStore()

        for path in VEHICLE_STATE_PROPERTIES:
            self.properties.get_node(path, create=True)

        self.fcs = FlightControlSystem(
            self.properties, delta_t=delta_t, rate=rate, random_seed=random_seed
        )

        logger.info("Created aircraft: %s", name)

    @property
    def gear_units(self) -> list[GearUnit]:
        return self.fcs.gear_units

    @property
    def engine_count(self) -> int:
        return len(self.fcs.engines)

    def set_paths(self, aircraft_path: str | Path | None, systems_path: str | Path | None) -> None:
        """Set the directories system files are looked up in."""
        self.fcs.aircraft_path = Path(aircraft_path) if aircraft_path is not None else None
        self.fcs.systems_path = Path(systems_path) if systems_path is not None else None

    def add_engine(self) -> int:
        """Add one engine's throttle, mixture, advance and feather registers.

        Returns:
            Index of the new engine.
        """
        index = self.fcs.add_throttle()
        logger.debug("Added engine %d to aircraft '%s'", index, self.name)
        return index

    def add_gear(self, unit: GearUnit) -> int:
        """Add one landing gear unit.

        Returns:
            Index of the new unit.
        """
        index = self.fcs.add_gear(unit)
        logger.debug("Added gear unit '%s' (%d) to aircraft '%s'", unit.name, index, self.name)
        return index

    def load_system(self, element: Element, kind: SystemKind = SystemKind.SYSTEM) -> None:
        """Load a control document given as an element.

        Raises:
            StructuralConfigError: If the document cannot be assembled.
        """
        self.fcs.load(element, kind)

    def load_system_file(
        self,
        file_name: str,
        kind: SystemKind = SystemKind.SYSTEM,
        overrides: dict[str, float] | None = None,
    ) -> None:
        """Load a control document from the system search path.

        Args:
            file_name: System file name, with or without the .xml suffix.
            kind: Kind of document.
            overrides: Property values applied after the file's own
                interface properties are created.

        Raises:
            StructuralConfigError: If the file cannot be found or assembled.
        """
        reference = Element(kind.value, {"file": file_name})
        for path, value in (overrides or {}).items():
            override = reference.add_child(Element("property", {"value": repr(float(value))}))
            override.add_data(path)
        self.fcs.load(reference, kind)

    def init(self) -> None:
        """Zero every register and reset every channel."""
        self.fcs.init_model()
        logger.info("Aircraft '%s' initialized", self.name)

    def run(self, holding: bool = False) -> TickResult:
        """Execute one simulation frame of the control laws."""
        return self.fcs.run(holding)

    def get_property(self, path: str, default: float = 0.0) -> float:
        return self.properties.get_double_value(path, default)

    def set_property(self, path: str, value: float) -> None:
        """Write a property, creating it when absent."""
        self.properties.set_double_value(path, value)

    def __repr__(self) -> str:
        return (
            f"Aircraft(name='{self.name}', engines={self.engine_count}, "
            f"gear={len(self.gear_units)}, channels={len(self.fcs.channels)})"
        )
