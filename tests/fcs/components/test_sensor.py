"""Tests for the sensor component."""

import logging
import math

import pytest

from flightlaw.core.document import parse_xml_string
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.flight_control import FlightControlSystem

DT = 0.01


def sensor(make_component, body: str):
    return make_component(
        f'<sensor name="aero/qbar-sensor"><input>aero/qbar-psf</input>{body}</sensor>'
    )


class TestDegradation:
    """Test the signal degradation stages."""

    def test_passthrough(self, make_component, store: PropertyStore) -> None:
        """Test a sensor without settings reports its input."""
        qbar = sensor(make_component, "<output>aero/qbar-measured</output>")
        store.set_double_value("aero/qbar-psf", 42.0)

        qbar.run()

        assert qbar.output == 42.0
        assert store.get_double_value("aero/qbar-measured") == 42.0

    def test_gain_and_bias(self, make_component, store: PropertyStore) -> None:
        """Test gain applies before bias."""
        qbar = sensor(make_component, "<gain>2</gain><bias>0.5</bias>")
        store.set_double_value("aero/qbar-psf", 10.0)

        qbar.run()

        assert qbar.output == 20.5

    def test_lag(self, make_component, store: PropertyStore) -> None:
        """Test the lag starts from zero."""
        qbar = sensor(make_component, "<lag>10</lag>")
        store.set_double_value("aero/qbar-psf", 1.0)

        qbar.run()

        assert qbar.output == pytest.approx(DT * 10 / (2 + DT * 10))

    def test_drift(self, make_component, store: PropertyStore) -> None:
        """Test drift accumulates at its rate."""
        qbar = sensor(make_component, "<drift_rate>1</drift_rate>")
        store.set_double_value("aero/qbar-psf", 5.0)

        for _ in range(10):
            qbar.run()

        assert qbar.output == pytest.approx(5.1)

        qbar.reset()
        qbar.run()
        assert qbar.output == pytest.approx(5.01)

    @pytest.mark.parametrize(("value", "expected"), [(3.7, 3.0), (20.0, 16.0), (-5.0, 0.0)])
    def test_quantization(
        self, make_component, store: PropertyStore, value: float, expected: float
    ) -> None:
        """Test the output snaps to the converter resolution within its range."""
        qbar = sensor(
            make_component, "<quantization><bits>4</bits><min>0</min><max>16</max></quantization>"
        )
        store.set_double_value("aero/qbar-psf", value)

        qbar.run()

        assert qbar.output == expected

    @pytest.mark.parametrize(
        ("bits", "low", "high"),
        [
            ("4", "5", "5"),
            ("0", "0", "1"),
            ("inf", "0", "1"),
            ("nan", "0", "1"),
            ("8", "-inf", "1"),
        ],
    )
    def test_invalid_quantization(self, make_component, bits: str, low: str, high: str) -> None:
        """Test unusable bit counts and ranges are rejected."""
        with pytest.raises(StructuralConfigError, match="invalid quantization"):
            sensor(
                make_component,
                f"<quantization><bits>{bits}</bits><min>{low}</min><max>{high}</max>"
                "</quantization>",
            )

    def test_quantization_passes_nan(self, make_component, store: PropertyStore) -> None:
        """Test an undefined input stays undefined through quantization."""
        qbar = sensor(
            make_component,
            "<quantization><bits>4</bits><min>0</min><max>16</max></quantization>",
        )
        store.set_double_value("aero/qbar-psf", math.nan)

        qbar.run()

        assert math.isnan(qbar.output)


class TestNoise:
    """Test random noise."""

    def test_uniform_percent_bounds(self, make_component, store: PropertyStore) -> None:
        """Test uniform percent noise stays within its band."""
        qbar = sensor(make_component, '<noise variation="PERCENT">0.1</noise>')
        store.set_double_value("aero/qbar-psf", 10.0)

        outputs = []
        for _ in range(50):
            qbar.run()
            outputs.append(qbar.output)

        assert all(9.0 <= value <= 11.0 for value in outputs)
        assert len(set(outputs)) > 1

    def test_seed_reproduces_noise(self, make_component, store: PropertyStore) -> None:
        """Test two engines with the same seed produce the same noise."""
        body = '<noise variation="ABSOLUTE" distribution="GAUSSIAN">0.5</noise>'
        first = sensor(make_component, body)
        other_store = PropertyStore()
        other_fcs = FlightControlSystem(other_store, delta_t=DT, random_seed=1234)
        element = parse_xml_string(
            f'<sensor name="aero/qbar-sensor"><input>aero/qbar-psf</input>{body}</sensor>'
        )
        second = other_fcs.registry.create("sensor", other_fcs, element)

        first_outputs, second_outputs = [], []
        for _ in range(5):
            first.run()
            second.run()
            first_outputs.append(first.output)
            second_outputs.append(second.output)

        assert first_outputs == second_outputs
        assert any(value != 0.0 for value in first_outputs)

    def test_bad_distribution(self, make_component) -> None:
        """Test an unknown distribution is rejected."""
        with pytest.raises(StructuralConfigError, match="bad noise setting"):
            sensor(make_component, '<noise distribution="POISSON">0.1</noise>')


class TestFailures:
    """Test failures injected through properties."""

    def test_fail_low_and_high(self, make_component, store: PropertyStore) -> None:
        """Test fail_low and fail_high pin the output to infinity."""
        qbar = sensor(make_component, "")
        store.set_double_value("aero/qbar-psf", 1.0)

        store.set_double_value("aero/qbar-sensor/malfunction/fail_low", 1.0)
        qbar.run()
        assert qbar.output == -math.inf
        assert qbar.fail_low is True

        store.set_double_value("aero/qbar-sensor/malfunction/fail_low", 0.0)
        store.set_double_value("aero/qbar-sensor/malfunction/fail_high", 1.0)
        qbar.run()
        assert qbar.output == math.inf

    def test_failure_limited_by_quantization(self, make_component, store: PropertyStore) -> None:
        """Test quantization bounds a failed output."""
        qbar = sensor(
            make_component, "<quantization><bits>4</bits><min>0</min><max>16</max></quantization>"
        )
        store.set_double_value("aero/qbar-sensor/malfunction/fail_high", 1.0)

        qbar.run()

        assert qbar.output == 16.0

    def test_fail_stuck(self, make_component, store: PropertyStore) -> None:
        """Test a stuck sensor keeps reporting its last output."""
        qbar = sensor(make_component, "")
        store.set_double_value("aero/qbar-psf", 1.0)
        qbar.run()

        store.set_double_value("aero/qbar-sensor/malfunction/fail_stuck", 1.0)
        store.set_double_value("aero/qbar-psf", 5.0)
        qbar.run()

        assert qbar.output == 1.0
        assert store.get_double_value("aero/qbar-sensor/malfunction/fail_stuck") == 1.0


class TestNameClash:
    """Test two sensors publishing under one name."""

    def test_second_sensor_still_loads(self, load_system, store: PropertyStore, caplog) -> None:
        """Test the clash is logged and the malfunction flags stay with the first sensor."""
        with caplog.at_level(logging.ERROR):
            fcs = load_system(
                '<system name="s"><channel name="c">'
                '<sensor name="ap/sensed"><input>ap/a</input></sensor>'
                '<sensor name="ap/sensed"><input>ap/b</input><output>ap/out-b</output></sensor>'
                "</channel></system>"
            )
        store.set_double_value("ap/b", 3.0)
        store.set_double_value("ap/sensed/malfunction/fail_stuck", 1.0)

        fcs.run()

        first, second = fcs.iter_components()
        assert "already tied" in caplog.text
        assert first.fail_stuck is True
        assert second.fail_stuck is False
        assert store.get_double_value("ap/out-b") == 3.0
