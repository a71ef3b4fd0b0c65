"""Tests for building aircraft from YAML definitions."""

from pathlib import Path

import pytest

from flightlaw.aircraft.builder import AircraftBuilder
from flightlaw.core.config import ConfigError, ConfigLoader
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.flight_control import BrakeGroup, SystemKind

FCS_DOCUMENT = """
<flight_control name="trainer">
  <channel name="pitch">
    <aerosurface_scale name="elevator scale">
      <input>fcs/elevator-cmd-norm</input>
      <range><min>-0.35</min><max>0.30</max></range>
      <output>fcs/elevator-pos-rad</output>
    </aerosurface_scale>
  </channel>
</flight_control>
"""

AUTOPILOT_DOCUMENT = """
<autopilot name="trainer-ap">
  <property value="0.5">ap/roll-gain</property>
</autopilot>
"""

DEFINITION = """
aircraft:
  name: Trainer
  manufacturer: Acme
  icao_code: TRNR
  dt: 0.01
  rate: 2
  random_seed: 7
  engines: 2
  gear:
    - {name: nose, steerable: true, max_steer_deg: 60}
    - {name: left main, brake_group: left}
  systems:
    - {kind: flight_control, file: fcs}
    - {kind: autopilot, file: autopilot, properties: {ap/roll-gain: 0.8}}
"""


@pytest.fixture
def aircraft_dir(tmp_path: Path) -> Path:
    """Aircraft directory with a definition and its control documents."""
    systems = tmp_path / "Systems"
    systems.mkdir()
    (systems / "fcs.xml").write_text(FCS_DOCUMENT, encoding="utf-8")
    (systems / "autopilot.xml").write_text(AUTOPILOT_DOCUMENT, encoding="utf-8")
    (tmp_path / "trainer.yaml").write_text(DEFINITION, encoding="utf-8")
    return tmp_path


def build(data: dict, base_dir: Path | None = None):
    return AircraftBuilder().build_from_config(ConfigLoader(data, base_dir=base_dir))


class TestBuild:
    """Test a complete definition."""

    def test_build_from_file(self, aircraft_dir: Path) -> None:
        """Test every part of the definition reaches the aircraft."""
        aircraft = AircraftBuilder().build(aircraft_dir / "trainer.yaml")

        assert aircraft.name == "Trainer"
        assert aircraft.metadata == {"manufacturer": "Acme", "icao_code": "TRNR"}
        assert aircraft.fcs.delta_t == 0.01
        assert aircraft.fcs.rate == 2
        assert aircraft.engine_count == 2
        assert aircraft.fcs.aircraft_path == aircraft_dir.resolve()
        assert aircraft.fcs.system_names == ["FCS: trainer", "Autopilot: trainer-ap"]
        assert aircraft.get_property("ap/roll-gain") == 0.8

    def test_gear_units(self, aircraft_dir: Path) -> None:
        """Test gear units are created in order."""
        aircraft = AircraftBuilder().build(aircraft_dir / "trainer.yaml")

        nose, main = aircraft.gear_units
        assert nose.steerable and nose.max_steer_deg == 60.0
        assert main.brake_group is BrakeGroup.LEFT
        assert not main.steerable

    def test_built_aircraft_runs(self, aircraft_dir: Path) -> None:
        """Test the control laws run on the built aircraft."""
        aircraft = AircraftBuilder().build(aircraft_dir / "trainer.yaml")
        aircraft.set_property("fcs/elevator-cmd-norm", -1.0)
        aircraft.set_property("fcs/steer-cmd-norm", 0.5)

        aircraft.run()

        assert aircraft.get_property("fcs/elevator-pos-rad") == pytest.approx(-0.35)
        assert aircraft.get_property("fcs/steer-pos-deg") == 30.0

    def test_shared_systems_path(self, tmp_path: Path) -> None:
        """Test the builder's systems path is used when the definition names none."""
        library = tmp_path / "library"
        library.mkdir()
        (library / "fcs.xml").write_text(FCS_DOCUMENT, encoding="utf-8")

        aircraft = AircraftBuilder(library).build_from_config(
            ConfigLoader(
                {"aircraft": {"systems": [{"kind": "flight_control", "file": "fcs"}]}},
                base_dir=tmp_path,
            )
        )

        assert aircraft.fcs.systems_path == library
        assert aircraft.fcs.system_names == ["FCS: trainer"]

    def test_defaults(self, tmp_path: Path, caplog) -> None:
        """Test a minimal definition."""
        aircraft = build({"aircraft": {}}, tmp_path)

        assert aircraft.name == "Unknown Aircraft"
        assert aircraft.fcs.rate == 1
        assert aircraft.engine_count == 0
        assert "No systems configured" in caplog.text


class TestInvalidDefinitions:
    """Test definition errors."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing definition raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            AircraftBuilder().build(tmp_path / "absent.yaml")

    def test_missing_section(self) -> None:
        """Test a definition without aircraft section raises ConfigError."""
        with pytest.raises(ConfigError, match="section not found"):
            build({"plane": {}})

    @pytest.mark.parametrize(
        ("section", "message"),
        [
            ({"rate": 0}, "rate must be at least 1"),
            ({"dt": -0.01}, "dt must be positive"),
            ({"dt": "fast"}, "not a number"),
            ({"engines": "two"}, "not an integer"),
            ({"gear": {"name": "nose"}}, "gear must be a list"),
            ({"gear": [{"steerable": True}]}, "needs a 'name'"),
            ({"gear": [{"name": "n", "brake_group": "front"}]}, "Unknown brake group"),
            ({"gear": [{"name": "n", "max_steer_deg": "wide"}]}, "Invalid max_steer_deg"),
            ({"systems": {"file": "fcs"}}, "systems must be a list"),
            ({"systems": [{"kind": "system"}]}, "needs a 'file'"),
            ({"systems": [{"kind": "engine", "file": "x"}]}, "Unknown system kind"),
            ({"systems": [{"file": "x", "properties": [1]}]}, "must be a mapping"),
            ({"systems": [{"file": "x", "properties": {"a": "b"}}]}, "Invalid property override"),
        ],
    )
    def test_invalid(self, tmp_path: Path, section: dict, message: str) -> None:
        """Test each malformed entry raises ConfigError."""
        with pytest.raises(ConfigError, match=message):
            build({"aircraft": section}, tmp_path)

    def test_unloadable_system(self, tmp_path: Path) -> None:
        """Test a missing system file raises StructuralConfigError."""
        with pytest.raises(StructuralConfigError, match="Could not locate system file"):
            build({"aircraft": {"systems": [{"file": "missing"}]}}, tmp_path)

    def test_system_kind_default(self, tmp_path: Path) -> None:
        """Test entries without kind load as systems."""
        (tmp_path / "misc.xml").write_text("<document name='misc'/>", encoding="utf-8")

        aircraft = build({"aircraft": {"systems": [{"file": "misc"}]}}, tmp_path)

        assert aircraft.fcs.documents[0][1] is SystemKind.SYSTEM
        assert aircraft.fcs.system_names == ["System: misc"]
