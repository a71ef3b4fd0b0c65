"""Aircraft builder for loading aircraft from YAML configuration.

The AircraftBuilder reads an aircraft definition, sizes the engine and gear
registers, and loads the flight control, autopilot and system documents it
lists, in order.

Typical usage:
    builder = AircraftBuilder()
    aircraft = builder.build("aircraft/trainer/trainer.yaml")

Aircraft definition layout:
    aircraft:
      name: Trainer
      aircraft_path: .
      systems_path: ../systems
      dt: 0.0083333
      engines: 1
      gear:
        - {name: nose, steerable: true, max_steer_deg: 60}
      systems:
        - {kind: flight_control, file: fcs}
        - {kind: autopilot, file: autopilot, properties: {ap/roll-gain: 0.5}}
"""

from pathlib import Path
from typing import Any

from flightlaw.aircraft.aircraft import Aircraft
from flightlaw.core.config import ConfigError, ConfigLoader
from flightlaw.core.logging_system import get_logger
from flightlaw.fcs.flight_control import BrakeGroup, GearUnit, SystemKind
from flightlaw.fcs.model import DEFAULT_DELTA_T

logger = get_logger(__name__)


class AircraftBuilder:
    """Builder for constructing aircraft from YAML configuration.

    The builder handles:
    - Loading the YAML definition
    - Resolving the aircraft and systems directories
    - Adding engines and gear units
    - Loading every listed control document

    Examples:
        >>> builder = AircraftBuilder()
        >>> aircraft = builder.build("aircraft/trainer/trainer.yaml")
        >>> aircraft.fcs.system_names
        ['FCS: trainer', 'Autopilot: trainer-ap']
    """

    def __init__(self, systems_path: str | Path | None = None) -> None:
        """Initialize aircraft builder.

        Args:
            systems_path: Shared systems-library directory used when the
                definition does not name one.
        """
        self.systems_path = Path(systems_path) if systems_path is not None else None

    def build(self, config_path: str | Path) -> Aircraft:
        """Build aircraft from YAML configuration file.

        Args:
            config_path: Path to aircraft YAML configuration file.

        Returns:
            Configured Aircraft instance.

        Raises:
            ConfigError: If the file is missing or the definition is invalid.
            StructuralConfigError: If a control document cannot be loaded.
        """
        logger.info("Loading aircraft from: %s", config_path)
        return self.build_from_config(ConfigLoader.load(config_path))

    def build_from_config(self, config: ConfigLoader) -> Aircraft:
        """Build aircraft from an already loaded configuration.

        Raises:
            ConfigError: If the definition is invalid.
            StructuralConfigError: If a control document cannot be loaded.
        """
        config.get_section("aircraft")

        name = config.get("aircraft.name", "Unknown Aircraft")
        rate = config.get_int("aircraft.rate", 1)
        if rate < 1:
            raise ConfigError(f"aircraft.rate must be at least 1, got {rate}")
        delta_t = config.get_float("aircraft.dt", DEFAULT_DELTA_T)
        if delta_t <= 0.0:
            raise ConfigError(f"aircraft.dt must be positive, got {delta_t}")

        seed = config.get("aircraft.random_seed")
        if seed is not None:
            seed = config.get_int("aircraft.random_seed")

        aircraft = Aircraft(
            name,
            delta_t=delta_t,
            rate=rate,
            random_seed=seed,
            metadata={
                "manufacturer": config.get("aircraft.manufacturer"),
                "icao_code": config.get("aircraft.icao_code"),
            },
        )
        aircraft.set_paths(
            config.get_path("aircraft.aircraft_path", "."),
            config.get_path("aircraft.systems_path") or self.systems_path,
        )

        for _ in range(config.get_int("aircraft.engines", 0)):
            aircraft.add_engine()

        gear_config = config.get("aircraft.gear", [])
        if not isinstance(gear_config, list):
            raise ConfigError("aircraft.gear must be a list")
        for unit_config in gear_config:
            aircraft.add_gear(self._gear_unit(unit_config))

        systems_config = config.get("aircraft.systems", [])
        if not isinstance(systems_config, list):
            raise ConfigError("aircraft.systems must be a list")
        if not systems_config:
            logger.warning("No systems configured for aircraft '%s'", name)

        for system_config in systems_config:
            file_name, kind, overrides = self._system_entry(system_config)
            aircraft.load_system_file(file_name, kind, overrides)

        logger.info(
            "Aircraft '%s' built successfully with %d system(s)",
            name,
            len(aircraft.fcs.system_names),
        )
        return aircraft

    @staticmethod
    def _gear_unit(unit_config: Any) -> GearUnit:
        """Create a gear unit from its configuration mapping.

        Raises:
            ConfigError: If the mapping is invalid.
        """
        if not isinstance(unit_config, dict) or "name" not in unit_config:
            raise ConfigError(f"Gear unit config needs a 'name': {unit_config!r}")

        group_name = str(unit_config.get("brake_group", "none")).upper()
        try:
            brake_group = BrakeGroup[group_name]
        except KeyError as e:
            raise ConfigError(f"Unknown brake group {group_name!r}") from e

        try:
            max_steer_deg = float(unit_config.get("max_steer_deg", 0.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid max_steer_deg in gear unit {unit_config['name']}") from e

        return GearUnit(
            name=str(unit_config["name"]),
            steerable=bool(unit_config.get("steerable", False)),
            max_steer_deg=max_steer_deg,
            brake_group=brake_group,
        )

    @staticmethod
    def _system_entry(system_config: Any) -> tuple[str, SystemKind, dict[str, float]]:
        """Split one systems entry into file name, kind and overrides.

        Raises:
            ConfigError: If the entry is invalid.
        """
        if not isinstance(system_config, dict) or not system_config.get("file"):
            raise ConfigError(f"System config needs a 'file': {system_config!r}")

        kind_name = system_config.get("kind", SystemKind.SYSTEM.value)
        try:
            kind = SystemKind(kind_name)
        except ValueError as e:
            raise ConfigError(f"Unknown system kind {kind_name!r}") from e

        overrides = system_config.get("properties") or {}
        if not isinstance(overrides, dict):
            raise ConfigError(f"System properties must be a mapping: {overrides!r}")
        try:
            overrides = {str(path): float(value) for path, value in overrides.items()}
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid property override in {system_config['file']}") from e

        return str(system_config["file"]), kind, overrides
