"""Tests for loading control documents into the engine."""

import logging
from pathlib import Path

import pytest

from flightlaw.core.document import Element
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.flight_control import SystemKind

AUTOPILOT = """
<autopilot name="trainer-ap">
  <property value="0.5">ap/roll-gain</property>
  <property>ap/master</property>
  <channel name="roll" execute="ap/master">
    <pure_gain name="roll command">
      <input>ap/roll-error</input>
      <gain>ap/roll-gain</gain>
      <output>fcs/aileron-cmd-norm</output>
    </pure_gain>
  </channel>
</autopilot>
"""


def reference(file_name: str, overrides: dict[str, float] | None = None) -> Element:
    element = Element("autopilot", {"file": file_name})
    for path, value in (overrides or {}).items():
        element.add_child(Element("property", {"value": repr(value)})).add_data(path)
    return element


@pytest.fixture
def aircraft_dir(tmp_path: Path) -> Path:
    """Aircraft directory holding Systems/autopilot.xml."""
    systems = tmp_path / "trainer" / "Systems"
    systems.mkdir(parents=True)
    (systems / "autopilot.xml").write_text(AUTOPILOT, encoding="utf-8")
    return tmp_path / "trainer"


class TestFileLookup:
    """Test locating referenced system files."""

    def test_aircraft_systems_dir(self, fcs, aircraft_dir: Path, store: PropertyStore) -> None:
        """Test a file in the aircraft's Systems directory is found."""
        fcs.aircraft_path = aircraft_dir

        fcs.load(reference("autopilot"), SystemKind.AUTOPILOT)

        assert fcs.system_names == ["Autopilot: trainer-ap"]
        assert store.get_double_value("ap/roll-gain") == 0.5

    def test_shared_library(self, fcs, tmp_path: Path) -> None:
        """Test the shared systems library is searched."""
        library = tmp_path / "systems"
        library.mkdir()
        (library / "yaw-damper.xml").write_text(
            '<system name="yaw damper"><property>ap/yd</property></system>', encoding="utf-8"
        )
        fcs.systems_path = library

        fcs.load(Element("system", {"file": "yaw-damper.xml"}), SystemKind.SYSTEM)

        assert fcs.system_names == ["System: yaw damper"]

    def test_missing_file(self, fcs, tmp_path: Path) -> None:
        """Test an unknown file is a configuration error."""
        fcs.aircraft_path = tmp_path

        with pytest.raises(StructuralConfigError, match="Could not locate system file"):
            fcs.load(reference("absent"))

    def test_malformed_file(self, fcs, tmp_path: Path) -> None:
        """Test a malformed file is a configuration error."""
        (tmp_path / "broken.xml").write_text("<system><channel></system>", encoding="utf-8")
        fcs.aircraft_path = tmp_path

        with pytest.raises(StructuralConfigError, match="Error loading file"):
            fcs.load(reference("broken"))


class TestOverrides:
    """Test property values given by the referencing element."""

    def test_override_creates_property(
        self, fcs, aircraft_dir: Path, store: PropertyStore
    ) -> None:
        """Test an override of an unknown property declares it."""
        fcs.aircraft_path = aircraft_dir

        fcs.load(reference("autopilot", {"ap/pitch-gain": 1.5}), SystemKind.AUTOPILOT)

        assert store.is_tied("ap/pitch-gain")
        assert store.get_double_value("ap/pitch-gain") == 1.5

    def test_override_declared_property(
        self, fcs, aircraft_dir: Path, store: PropertyStore, caplog
    ) -> None:
        """Test an override of a declared property is logged."""
        fcs.aircraft_path = aircraft_dir
        with caplog.at_level(logging.INFO):
            fcs.load(reference("autopilot", {"ap/roll-gain": 0.8}), SystemKind.AUTOPILOT)

        assert store.get_double_value("ap/roll-gain") == 0.8
        assert "Overriding value for property ap/roll-gain" in caplog.text

    def test_inline_document_declares(self, load_system, store: PropertyStore) -> None:
        """Test <property> children of an inline document are declarations."""
        load_system('<system name="s"><property value="2">ap/k</property></system>')

        assert store.is_tied("ap/k")
        assert store.get_double_value("ap/k") == 2.0


class TestValidation:
    """Test load-time checks and rollback."""

    def test_undefined_gate(self, load_system) -> None:
        """Test a channel gated by an unknown property is rejected."""
        with pytest.raises(StructuralConfigError, match="is undefined or not understood"):
            load_system(
                '<system name="s"><channel name="c" execute="ap/nowhere">'
                '<summer name="x"><input>a</input></summer></channel></system>'
            )

    def test_unknown_component_is_skipped(self, load_system, caplog) -> None:
        """Test an unknown component kind is logged and the rest load."""
        with caplog.at_level(logging.ERROR):
            fcs = load_system(
                '<system name="s"><channel name="pitch">'
                '<bogus name="b"/><summer name="x"><input>a</input></summer>'
                "</channel></system>"
            )

        assert "Unknown FCS component: bogus in channel 'pitch'" in caplog.text
        assert fcs.get_component_strings() == "x"

    def test_rollback(self, load_system, fcs, store: PropertyStore) -> None:
        """Test a failed load leaves no trace and earlier loads survive."""
        load_system(
            '<system name="first"><channel name="a">'
            '<summer name="kept"><input>a</input></summer></channel></system>'
        )

        with pytest.raises(StructuralConfigError):
            load_system(
                '<system name="second"><property>ap/declared</property>'
                '<function name="ap/f"><v>1</v></function>'
                '<channel name="b"><summer name="dropped"><input>a</input></summer>'
                "<summer><input>a</input></summer></channel></system>"
            )

        assert fcs.system_names == ["System: first"]
        assert fcs.get_component_strings() == "kept"
        assert fcs.pre_functions == []
        assert not store.is_tied("ap/declared")
        assert not store.is_tied("ap/f")
        assert not store.is_tied("fcs/dropped")
        assert store.is_tied("fcs/kept")

    def test_stale_read_warning(self, load_system, caplog) -> None:
        """Test reading a value a later component writes is reported."""
        with caplog.at_level(logging.WARNING):
            load_system(
                '<system name="s"><channel name="loop">'
                '<pure_gain name="reader"><input>ap/late</input></pure_gain>'
                '<pure_gain name="writer"><input>1</input><output>ap/late</output></pure_gain>'
                "</channel></system>"
            )

        assert "reader in channel loop reads ap/late before writer writes it" in caplog.text

    def test_unknown_function_type(self, load_system) -> None:
        """Test a function type other than pre and post is rejected."""
        with pytest.raises(StructuralConfigError, match="Unknown function type"):
            load_system('<system name="s"><function type="mid"><v>1</v></function></system>')


class TestModelNames:
    """Test the names systems are recorded under."""

    @pytest.mark.parametrize(
        ("tag", "kind", "expected"),
        [
            ("flight_control", SystemKind.SYSTEM, "FCS: c172"),
            ("autopilot", SystemKind.FLIGHT_CONTROL, "Autopilot: c172"),
            ("system", SystemKind.AUTOPILOT, "System: c172"),
            ("document", SystemKind.AUTOPILOT, "Autopilot: c172"),
        ],
    )
    def test_document_tag_wins(self, load_system, tag: str, kind, expected: str) -> None:
        """Test the document tag decides the prefix, falling back to the load kind."""
        fcs = load_system(f'<{tag} name="c172"/>', kind)

        assert fcs.system_names == [expected]
        assert fcs.name == expected

    def test_systems_accumulate(self, load_system) -> None:
        """Test several documents load in order."""
        load_system('<flight_control name="fcs"/>')
        fcs = load_system('<autopilot name="ap"/>')

        assert fcs.system_names == ["FCS: fcs", "Autopilot: ap"]
        assert [kind for _, kind in fcs.documents] == [SystemKind.SYSTEM, SystemKind.SYSTEM]
