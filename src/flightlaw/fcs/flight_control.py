"""Flight control system: the engine that owns and runs control channels.

The engine holds the pilot command registers, the surface, engine, gear and
brake position registers, and every channel loaded from the aircraft's
flight control, autopilot and system documents. Each frame it:

1. copies commands into positions that no control law drives (so an
   aircraft without a flight control document still responds);
2. computes each gear unit's default steering angle;
3. runs the pre-functions;
4. executes every channel in load order;
5. runs the post-functions.

Typical usage example:
    from flightlaw.core.document import load_xml_document
    from flightlaw.core.properties import PropertyStore
    from flightlaw.fcs.flight_control import FlightControlSystem, SystemKind

    fcs = FlightControlSystem(PropertyStore(), delta_t=1.0 / 120.0)
    fcs.add_throttle()
    fcs.load(load_xml_document("systems/autopilot.xml"), SystemKind.AUTOPILOT)
    fcs.run()
"""

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path

import numpy as np

from flightlaw.core.document import DocumentError, Element, load_xml_document
from flightlaw.core.properties import (
    PropertyError,
    PropertyStore,
    create_indexed_property_name,
)
from flightlaw.core.registry import ComponentRegistry
from flightlaw.core.resource_path import find_system_file
from flightlaw.fcs.channel import Channel
from flightlaw.fcs.components import FCSComponent, create_component_registry
from flightlaw.fcs.errors import StructuralConfigError, UnknownComponentKind
from flightlaw.fcs.function import Function
from flightlaw.fcs.model import DEFAULT_DELTA_T, Model
from flightlaw.fcs.registers import IndexedRegisterSet
from flightlaw.fcs.units import AngleForm, SurfaceRegister

logger = logging.getLogger(__name__)


class SystemKind(Enum):
    """Kinds of documents the engine loads."""

    FLIGHT_CONTROL = "flight_control"
    AUTOPILOT = "autopilot"
    SYSTEM = "system"


_MODEL_PREFIX = {
    SystemKind.FLIGHT_CONTROL: "FCS",
    SystemKind.AUTOPILOT: "Autopilot",
    SystemKind.SYSTEM: "System",
}


class TickResult(Enum):
    EXECUTED = "executed"
    SKIPPED = "skipped"


class BrakeGroup(IntEnum):
    """Brake groups a gear unit can belong to."""

    NONE = 0
    LEFT = 1
    RIGHT = 2
    CENTER = 3
    NOSE = 4
    TAIL = 5


@dataclass
class GearUnit:
    """A landing gear unit as the control system sees it.

    Attributes:
        name: Unit name.
        steerable: Whether the unit follows the steering command.
        max_steer_deg: Steering angle at full steering command.
        brake_group: Brake group the unit belongs to.
    """

    name: str
    steerable: bool = False
    max_steer_deg: float = 0.0
    brake_group: BrakeGroup = BrakeGroup.NONE

    def default_steer_angle(self, steer_cmd: float) -> float:
        if not self.steerable:
            return 0.0
        return steer_cmd * self.max_steer_deg


# Pilot commands: register name -> bound property
COMMANDS = {
    "aileron": "fcs/aileron-cmd-norm",
    "elevator": "fcs/elevator-cmd-norm",
    "rudder": "fcs/rudder-cmd-norm",
    "flap": "fcs/flap-cmd-norm",
    "speedbrake": "fcs/speedbrake-cmd-norm",
    "spoiler": "fcs/spoiler-cmd-norm",
    "pitch_trim": "fcs/pitch-trim-cmd-norm",
    "roll_trim": "fcs/roll-trim-cmd-norm",
    "yaw_trim": "fcs/yaw-trim-cmd-norm",
    "steer": "fcs/steer-cmd-norm",
    "gear": "gear/gear-cmd-norm",
}

# Surface register -> command copied into its normalized position
SURFACES = {
    "left-aileron": "aileron",
    "right-aileron": "aileron",
    "elevator": "elevator",
    "rudder": "rudder",
    "flap": "flap",
    "speedbrake": "speedbrake",
    "spoiler": "spoiler",
}

# Positions without an angle form
POSITIONS = {
    "gear": "gear/gear-pos-norm",
    "tailhook": "gear/tailhook-pos-norm",
    "wing_fold": "fcs/wing-fold-pos-norm",
}

BRAKE_PROPERTIES = {
    BrakeGroup.LEFT: "fcs/left-brake-cmd-norm",
    BrakeGroup.RIGHT: "fcs/right-brake-cmd-norm",
    BrakeGroup.CENTER: "fcs/center-brake-cmd-norm",
}

ENGINE_FIELDS = {
    "throttle_cmd": 0.0,
    "throttle_pos": 0.0,
    "mixture_cmd": 0.0,
    "mixture_pos": 0.0,
    "advance_cmd": 0.0,
    "advance_pos": 0.0,
    "feather_cmd": False,
    "feather_pos": False,
}

ENGINE_PROPERTIES = {
    "throttle_cmd": "fcs/throttle-cmd-norm",
    "throttle_pos": "fcs/throttle-pos-norm",
    "mixture_cmd": "fcs/mixture-cmd-norm",
    "mixture_pos": "fcs/mixture-pos-norm",
    "advance_cmd": "fcs/advance-cmd-norm",
    "advance_pos": "fcs/advance-pos-norm",
    "feather_cmd": "fcs/feather-cmd-norm",
    "feather_pos": "fcs/feather-pos-norm",
}

# Engine position fields and the command each one follows
ENGINE_PASSTHROUGH = {
    "throttle_pos": "throttle_cmd",
    "mixture_pos": "mixture_cmd",
    "advance_pos": "advance_cmd",
    "feather_pos": "feather_cmd",
}

STEER_PROPERTY = "fcs/steer-pos-deg"


class FlightControlSystem(Model):
    """Owns the control registers and runs the loaded channels.

    Attributes:
        channels: Loaded channels in execution order.
        engines: Per-engine throttle, mixture, advance and feather registers.
        steering: Per-gear steering angle registers.
        brakes: Per-brake-group commands.
        surfaces: Surface position registers by surface name.
        gear_units: Gear units in index order.
        aircraft_path: Aircraft root directory, for system file lookup.
        systems_path: Shared systems-library directory.
        rng: Random generator used by sensor noise.
    """

    def __init__(
        self,
        properties: PropertyStore,
        delta_t: float = DEFAULT_DELTA_T,
        rate: int = 1,
        registry: ComponentRegistry | None = None,
        random_seed: int | None = None,
    ) -> None:
        super().__init__(properties, delta_t, rate)
        self.name = "FCS"
        self.registry = registry or create_component_registry()
        self.rng = np.random.default_rng(random_seed)

        self.channels: list[Channel] = []
        self.system_names: list[str] = []
        self.documents: list[tuple[Element, SystemKind]] = []
        self.aircraft_path: Path | None = None
        self.systems_path: Path | None = None
        self._driven_paths: set[str] = set()

        self.commands: dict[str, float] = dict.fromkeys(COMMANDS, 0.0)
        self.positions: dict[str, float] = dict.fromkeys(POSITIONS, 0.0)
        self.commands["gear"] = self.positions["gear"] = 1.0
        self.surfaces = {name: SurfaceRegister(name) for name in SURFACES}

        self.engines = IndexedRegisterSet("engine", ENGINE_FIELDS)
        self.steering = IndexedRegisterSet("gear", {"steer_pos_deg": 0.0})
        self.brakes = IndexedRegisterSet("brake group", {"cmd": 0.0})
        for _ in BrakeGroup:
            self.brakes.add_unit()
        self.gear_units: list[GearUnit] = []

        self._bind()

    # Binding

    def _bind(self) -> None:
        for name, path in COMMANDS.items():
            self.properties.tie(
                path,
                lambda name=name: self.commands[name],
                lambda value, name=name: self.set_command(name, value),
            )

        for name, register in self.surfaces.items():
            for form in (AngleForm.RADIANS, AngleForm.DEGREES, AngleForm.NORMALIZED):
                self.properties.tie(
                    f"fcs/{name}-pos-{form.value}",
                    lambda register=register, form=form: register.get(form),
                    lambda value, register=register, form=form: register.set(form, value),
                )
            self.properties.tie(
                f"fcs/mag-{name}-pos-rad",
                lambda register=register: register.get(AngleForm.MAGNITUDE),
            )

        for name, path in POSITIONS.items():
            self.properties.tie(
                path,
                lambda name=name: self.positions[name],
                lambda value, name=name: self.set_position(name, value),
            )

        for group, path in BRAKE_PROPERTIES.items():
            self.properties.tie(
                path,
                lambda group=group: self.get_brake(group),
                lambda value, group=group: self.set_brake(group, value),
            )

    # Registers

    def add_throttle(self) -> int:
        """Add one engine's registers and bind its properties.

        Returns:
            Index of the new engine.
        """
        index = self.engines.add_unit()
        for field, base in ENGINE_PROPERTIES.items():
            self.properties.tie(
                create_indexed_property_name(base, index),
                lambda field=field: self.engines.get(field, index),
                lambda value, field=field: self.engines.set(field, index, value),
            )
        return index

    def add_gear(self, unit: GearUnit) -> int:
        """Add one gear unit; steerable units get a steering property.

        Returns:
            Index of the new unit.
        """
        index = self.steering.add_unit()
        self.gear_units.append(unit)
        if unit.steerable:
            self.properties.tie(
                create_indexed_property_name(STEER_PROPERTY, index),
                lambda: self.steering.get("steer_pos_deg", index),
                lambda value: self.steering.set("steer_pos_deg", index, value),
            )
        return index

    def get_command(self, name: str) -> float:
        return self.commands[name]

    def set_command(self, name: str, value: float) -> None:
        if name not in self.commands:
            raise KeyError(f"Unknown command register {name!r}")
        self.commands[name] = float(value)

    def get_position(self, name: str) -> float:
        return self.positions[name]

    def set_position(self, name: str, value: float) -> None:
        if name not in self.positions:
            raise KeyError(f"Unknown position register {name!r}")
        self.positions[name] = float(value)

    def get_surface_pos(self, surface: str, form: AngleForm = AngleForm.RADIANS) -> float:
        return self.surfaces[surface].get(form)

    def set_surface_pos(self, surface: str, form: AngleForm, value: float) -> None:
        self.surfaces[surface].set(form, value)

    def get_brake(self, group: BrakeGroup) -> float:
        return self.brakes.get("cmd", int(group))

    def set_brake(self, group: BrakeGroup, value: float) -> None:
        self.brakes.set("cmd", int(group), value)

    def get_gear_brake(self, gear: int) -> float:
        """Brake command reaching one gear unit through its brake group.

        Units outside any group are unbraked. An invalid index is logged and
        reads 0.0.
        """
        if not 0 <= gear < len(self.gear_units):
            logger.error(
                "Gear unit %d does not exist! %d gear units exist", gear, len(self.gear_units)
            )
            return 0.0
        group = self.gear_units[gear].brake_group
        if group is BrakeGroup.NONE:
            return 0.0
        return self.get_brake(group)

    def get_throttle_cmd(self, engine: int) -> float:
        return self.engines.get("throttle_cmd", engine)

    def set_throttle_cmd(self, engine: int, value: float) -> None:
        self.engines.set("throttle_cmd", engine, value)

    def get_throttle_pos(self, engine: int) -> float:
        return self.engines.get("throttle_pos", engine)

    def set_throttle_pos(self, engine: int, value: float) -> None:
        self.engines.set("throttle_pos", engine, value)

    def get_mixture_cmd(self, engine: int) -> float:
        return self.engines.get("mixture_cmd", engine)

    def set_mixture_cmd(self, engine: int, value: float) -> None:
        self.engines.set("mixture_cmd", engine, value)

    def get_mixture_pos(self, engine: int) -> float:
        return self.engines.get("mixture_pos", engine)

    def set_mixture_pos(self, engine: int, value: float) -> None:
        self.engines.set("mixture_pos", engine, value)

    def get_advance_cmd(self, engine: int) -> float:
        return self.engines.get("advance_cmd", engine)

    def set_advance_cmd(self, engine: int, value: float) -> None:
        self.engines.set("advance_cmd", engine, value)

    def get_advance_pos(self, engine: int) -> float:
        return self.engines.get("advance_pos", engine)

    def set_advance_pos(self, engine: int, value: float) -> None:
        self.engines.set("advance_pos", engine, value)

    def get_feather_cmd(self, engine: int) -> bool:
        return self.engines.get("feather_cmd", engine)

    def set_feather_cmd(self, engine: int, value: bool) -> None:
        self.engines.set("feather_cmd", engine, value)

    def get_feather_pos(self, engine: int) -> bool:
        return self.engines.get("feather_pos", engine)

    def set_feather_pos(self, engine: int, value: bool) -> None:
        self.engines.set("feather_pos", engine, value)

    def get_steer_pos_deg(self, gear: int) -> float:
        return self.steering.get("steer_pos_deg", gear)

    def set_steer_pos_deg(self, gear: int, value: float) -> None:
        self.steering.set("steer_pos_deg", gear, value)

    # Lifecycle

    def init_model(self) -> None:
        """Zero every register and reset every channel; structure is kept."""
        self.commands = dict.fromkeys(self.commands, 0.0)
        self.positions = dict.fromkeys(self.positions, 0.0)
        for register in self.surfaces.values():
            register.reset()
        self.engines.zero()
        self.steering.zero()
        self.brakes.zero()
        for channel in self.channels:
            channel.reset()
        self._exe_ctr = 1

    def run(self, holding: bool = False) -> TickResult:
        """Execute one frame.

        Args:
            holding: True while the simulation is paused.

        Returns:
            SKIPPED when holding or when this frame is not due at the
            model's rate, EXECUTED otherwise.
        """
        if holding or not self.is_due():
            return TickResult.SKIPPED

        self._passthrough()
        self._default_steering()
        self.run_pre_functions()
        for channel in self.channels:
            channel.execute()
        self.run_post_functions()
        return TickResult.EXECUTED

    def _passthrough(self) -> None:
        driven = self._driven_paths

        for position, command in ENGINE_PASSTHROUGH.items():
            skip = {
                i
                for i in range(len(self.engines))
                if self._canonical(create_indexed_property_name(ENGINE_PROPERTIES[position], i))
                in driven
            }
            self.engines.copy_field(command, position, skip)

        if POSITIONS["gear"] not in driven:
            self.positions["gear"] = self.commands["gear"]

        for surface, command in SURFACES.items():
            if f"fcs/{surface}-pos-norm" not in driven:
                self.surfaces[surface].set(AngleForm.NORMALIZED, self.commands[command])

    def _default_steering(self) -> None:
        steer_cmd = self.commands["steer"]
        for index, unit in enumerate(self.gear_units):
            path = self._canonical(create_indexed_property_name(STEER_PROPERTY, index))
            if path in self._driven_paths:
                continue
            self.steering.set("steer_pos_deg", index, unit.default_steer_angle(steer_cmd))

    @staticmethod
    def _canonical(path: str) -> str:
        # a/b[0] and a/b name the same node
        return path[:-3] if path.endswith("[0]") else path

    # Loading

    def load(self, element: Element, kind: SystemKind = SystemKind.FLIGHT_CONTROL) -> None:
        """Load one flight control, autopilot or system document.

        The element is either the document itself or a reference to a file
        through its "file" attribute. A referencing element may carry
        <property value="v">path</property> overrides that are applied after
        the file's own interface properties.

        Raises:
            StructuralConfigError: If the document cannot be located, parsed
                or assembled. Nothing from this document is kept and
                previously loaded documents are unaffected.
        """
        document, from_file = self._resolve(element)

        tied: list[str] = []
        channels: list[Channel] = []
        functions: list[Function] = []
        pre: list[Function] = []
        post: list[Function] = []
        committed = False
        try:
            self.load_interface_properties(document, tied)
            if from_file:
                self._apply_overrides(element, tied)

            pre, post = self.load_functions(document)
            for function in pre + post:
                functions.append(function)
                function.bind()

            for channel_element in document.iter_elements("channel"):
                channel = self._create_channel(channel_element)
                channels.append(channel)
                self._populate_channel(channel, channel_element)

            self._warn_stale_reads(channels)
            committed = True
        except (DocumentError, PropertyError) as e:
            raise StructuralConfigError(str(e)) from e
        finally:
            if not committed:
                for channel in channels:
                    channel.unbind()
                for function in functions:
                    function.unbind()
                self.release_interface_properties(tied)

        self.channels.extend(channels)
        self.pre_functions.extend(pre)
        self.post_functions.extend(post)
        self.documents.append((document, kind))

        self.name = self._model_name(document, kind)
        self.system_names.append(self.name)
        for channel in channels:
            for component in channel:
                self._driven_paths.update(component.written_paths())

        logger.info(
            "Loaded %s: %d channel(s), %d component(s)",
            self.name,
            len(channels),
            sum(len(channel) for channel in channels),
        )

    def _resolve(self, element: Element) -> tuple[Element, bool]:
        file_name = element.get_attribute_value("file")
        if not file_name:
            return element, False

        path = find_system_file(file_name, self.aircraft_path, self.systems_path)
        if path is None:
            raise StructuralConfigError(f"Could not locate system file {file_name}")
        try:
            return load_xml_document(path), True
        except DocumentError as e:
            raise StructuralConfigError(f"Error loading file {path}: {e}") from e

    def _apply_overrides(self, element: Element, tied: list[str]) -> None:
        for property_element in element.iter_elements("property"):
            path = property_element.get_data_line()
            value = 0.0
            if property_element.get_attribute_value("value"):
                value = property_element.get_attribute_value_as_number("value")

            node = self.properties.get_node(path)
            if node is not None:
                logger.info(
                    "Overriding value for property %s (old value: %g new value: %g)",
                    path,
                    node.get_double_value(),
                    value,
                )
                node.set_double_value(value)
            else:
                self.tie_interface_property(path, value, tied)

    def _create_channel(self, element: Element) -> Channel:
        name = element.get_attribute_value("name")
        gate_path = element.get_attribute_value("execute")
        if not gate_path:
            return Channel(name)

        gate = self.properties.get_node(gate_path)
        if gate is None:
            raise StructuralConfigError(
                f"The On/Off property, {gate_path} specified for channel {name} "
                "is undefined or not understood"
            )
        return Channel(name, gate)

    def _populate_channel(self, channel: Channel, element: Element) -> None:
        for component_element in element.children:
            tag = component_element.name
            if not self.registry.is_registered(tag):
                logger.error("%s", UnknownComponentKind(tag, channel.name))
                continue

            component: FCSComponent = self.registry.create(tag, self, component_element)
            channel.add(component)
            component.bind()

    def _warn_stale_reads(self, channels: list[Channel]) -> None:
        for channel in channels:
            components = channel.components
            for i, reader in enumerate(components):
                later_writes = {
                    path: writer
                    for writer in components[i:]
                    for path in writer.written_paths()
                }
                for path in reader.read_paths():
                    writer = later_writes.get(path)
                    if writer is not None:
                        logger.warning(
                            "Component %s in channel %s reads %s before %s writes it; "
                            "it sees the previous frame's value",
                            reader.name,
                            channel.name,
                            path,
                            writer.name,
                        )

    @staticmethod
    def _model_name(document: Element, kind: SystemKind) -> str:
        try:
            document_kind = SystemKind(document.name)
        except ValueError:
            document_kind = kind
        return f"{_MODEL_PREFIX[document_kind]}: {document.get_attribute_value('name')}"

    # Diagnostics

    def iter_components(self):
        for channel in self.channels:
            yield from channel

    def get_component_strings(self, delimiter: str = ",") -> str:
        """Names of every component in execution order."""
        return delimiter.join(component.name for component in self.iter_components())

    def get_component_values(self, delimiter: str = ",") -> str:
        """Outputs of every component in execution order."""
        return delimiter.join(f"{component.output:.9g}" for component in self.iter_components())
