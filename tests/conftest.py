"""Pytest configuration and fixtures for all tests."""

import pytest

from flightlaw.core.document import parse_xml_string
from flightlaw.core.logging_system import initialize_logging, shutdown_logging
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.flight_control import FlightControlSystem, SystemKind


@pytest.fixture(scope="session", autouse=True)
def test_logging(tmp_path_factory):
    """Send log files to a temporary directory for the whole session."""
    log_dir = tmp_path_factory.mktemp("logs")
    config = log_dir / "logging.yaml"
    config.write_text(
        f"level: DEBUG\nlog_dir: {log_dir.as_posix()}\n"
        "combined_log:\n  enabled: true\n  filename: test.log\n"
        "console:\n  enabled: false\n",
        encoding="utf-8",
    )
    initialize_logging(config, use_platform_dir=False)

    yield log_dir

    shutdown_logging()


@pytest.fixture
def store() -> PropertyStore:
    """Empty property store."""
    return PropertyStore()


@pytest.fixture
def fcs(store: PropertyStore) -> FlightControlSystem:
    """Engine running at 100 Hz with a fixed noise seed."""
    return FlightControlSystem(store, delta_t=0.01, random_seed=1234)


@pytest.fixture
def load_system(fcs: FlightControlSystem):
    """Return a function loading an XML document given as text into the engine."""

    def _load(text: str, kind: SystemKind = SystemKind.SYSTEM) -> FlightControlSystem:
        fcs.load(parse_xml_string(text), kind)
        return fcs

    return _load


@pytest.fixture
def make_component(fcs: FlightControlSystem):
    """Return a function building and binding one component from XML text."""

    def _make(text: str):
        element = parse_xml_string(text)
        component = fcs.registry.create(element.name, fcs, element)
        component.bind()
        return component

    return _make
