"""Tests for the Tustin filters and the integrator."""

import pytest

from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError

DT = 0.01


def run_frames(component, store: PropertyStore, path: str, values) -> list[float]:
    outputs = []
    for value in values:
        store.set_double_value(path, value)
        component.run()
        outputs.append(component.output)
    return outputs


class TestLagFilter:
    """Test the first order lag."""

    def test_starts_settled(self, make_component, store: PropertyStore) -> None:
        """Test the first output equals the first input."""
        lag = make_component('<lag_filter name="f"><input>ap/x</input><c1>10</c1></lag_filter>')

        assert run_frames(lag, store, "ap/x", [1.0, 1.0]) == pytest.approx([1.0, 1.0])

    def test_step_response(self, make_component, store: PropertyStore) -> None:
        """Test a step follows the discretized lag."""
        lag = make_component('<lag_filter name="f"><input>ap/x</input><c1>10</c1></lag_filter>')
        ca = DT * 10 / (2 + DT * 10)
        cb = (2 - DT * 10) / (2 + DT * 10)

        outputs = run_frames(lag, store, "ap/x", [0.0, 1.0, 1.0])

        assert outputs[1] == pytest.approx(ca)
        assert outputs[2] == pytest.approx(2 * ca + ca * cb)

    def test_converges(self, make_component, store: PropertyStore) -> None:
        """Test the output settles on a constant input."""
        lag = make_component('<lag_filter name="f"><input>ap/x</input><c1>10</c1></lag_filter>')

        outputs = run_frames(lag, store, "ap/x", [0.0] + [1.0] * 1000)

        assert outputs[-1] == pytest.approx(1.0, abs=1e-6)

    def test_scheduled_coefficient(self, make_component, store: PropertyStore) -> None:
        """Test property coefficients are re-read every frame."""
        lag = make_component('<lag_filter name="f"><input>ap/x</input><c1>ap/tau</c1></lag_filter>')

        frozen = run_frames(lag, store, "ap/x", [0.0, 1.0, 1.0])
        store.set_double_value("ap/tau", 10.0)
        moving = run_frames(lag, store, "ap/x", [1.0])

        assert frozen == [0.0, 0.0, 0.0]
        assert moving[0] == pytest.approx(2 * DT * 10 / (2 + DT * 10))

    def test_reset_settles_again(self, make_component, store: PropertyStore) -> None:
        """Test reset makes the next input the settled value."""
        lag = make_component('<lag_filter name="f"><input>ap/x</input><c1>10</c1></lag_filter>')
        run_frames(lag, store, "ap/x", [0.0, 1.0])

        lag.reset()

        assert run_frames(lag, store, "ap/x", [3.0]) == [3.0]


class TestOtherFilters:
    """Test the lead-lag, washout and second order filters."""

    def test_unity_lead_lag(self, make_component, store: PropertyStore) -> None:
        """Test equal numerator and denominator pass the signal through."""
        filt = make_component(
            '<lead_lag_filter name="f"><input>ap/x</input>'
            "<c1>1</c1><c2>1</c2><c3>1</c3><c4>1</c4></lead_lag_filter>"
        )

        outputs = run_frames(filt, store, "ap/x", [0.5, 1.0, -2.0, 0.25])

        assert outputs == pytest.approx([0.5, 1.0, -2.0, 0.25])

    def test_unity_second_order(self, make_component, store: PropertyStore) -> None:
        """Test a unit second order transfer function passes the signal through."""
        filt = make_component(
            '<second_order_filter name="f"><input>ap/x</input>'
            "<c1>0</c1><c2>0</c2><c3>1</c3><c4>0</c4><c5>0</c5><c6>1</c6>"
            "</second_order_filter>"
        )

        outputs = run_frames(filt, store, "ap/x", [0.5, 1.0, -2.0, 0.25])

        assert outputs == pytest.approx([0.5, 1.0, -2.0, 0.25])

    def test_washout_starts_from_zero(self, make_component, store: PropertyStore) -> None:
        """Test the washout reacts to the first input then decays."""
        washout = make_component(
            '<washout_filter name="f"><input>ap/x</input><c1>1</c1></washout_filter>'
        )

        outputs = run_frames(washout, store, "ap/x", [1.0] * 2000)

        assert outputs[0] == pytest.approx(2.0 / (2.0 + DT))
        assert outputs[-1] == pytest.approx(0.0, abs=1e-6)

    def test_missing_coefficients(self, make_component) -> None:
        """Test every coefficient the kind needs must be present."""
        with pytest.raises(StructuralConfigError, match="missing coefficient\\(s\\) c2, c3, c4"):
            make_component(
                '<lead_lag_filter name="f"><input>ap/x</input><c1>1</c1></lead_lag_filter>'
            )

    def test_zero_denominator(self, make_component) -> None:
        """Test constant coefficients giving a zero denominator are rejected."""
        with pytest.raises(StructuralConfigError, match="zero denominator"):
            make_component(
                '<lead_lag_filter name="f"><input>ap/x</input>'
                "<c1>1</c1><c2>1</c2><c3>0</c3><c4>0</c4></lead_lag_filter>"
            )


class TestIntegrator:
    """Test the trapezoidal integrator."""

    def test_integrates(self, make_component, store: PropertyStore) -> None:
        """Test a constant input ramps the output."""
        integrator = make_component(
            '<integrator name="f"><input>ap/x</input><c1>1</c1></integrator>'
        )

        outputs = run_frames(integrator, store, "ap/x", [1.0] * 100)

        assert outputs[0] == pytest.approx(0.005)
        assert outputs[-1] == pytest.approx(0.995)

    def test_trigger_resets(self, make_component, store: PropertyStore) -> None:
        """Test a non-zero trigger zeroes the integrator."""
        integrator = make_component(
            '<integrator name="f"><input>ap/x</input><c1>1</c1>'
            "<trigger>ap/reset</trigger></integrator>"
        )
        run_frames(integrator, store, "ap/x", [1.0] * 10)

        store.set_double_value("ap/reset", 1.0)
        integrator.run()
        assert integrator.output == 0.0

        store.set_double_value("ap/reset", 0.0)
        integrator.run()
        assert integrator.output == pytest.approx(0.005)
