"""Tests for the PID controller and the function component."""

import pytest

from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError


def pid(make_component, body: str):
    return make_component(f'<pid name="fcs/heading-pid"><input>ap/err</input>{body}</pid>')


def run(component, frames: int) -> None:
    for _ in range(frames):
        component.run()


class TestTerms:
    """Test the proportional, integral and derivative terms."""

    def test_proportional(self, make_component, store: PropertyStore) -> None:
        """Test a pure proportional controller."""
        controller = pid(make_component, "<kp>2</kp>")
        store.set_double_value("ap/err", 0.5)

        controller.run()

        assert controller.output == 1.0

    def test_rectangular_integral(self, make_component, store: PropertyStore) -> None:
        """Test the default rectangular integration."""
        controller = pid(make_component, "<ki>2</ki>")
        store.set_double_value("ap/err", 1.0)

        run(controller, 10)

        assert controller.output == pytest.approx(0.2)

    def test_trapezoidal_integral(self, make_component, store: PropertyStore) -> None:
        """Test trapezoidal integration averages the last two inputs."""
        controller = pid(make_component, "<ki>1</ki><integ_type>trap</integ_type>")
        store.set_double_value("ap/err", 1.0)

        run(controller, 10)

        assert controller.output == pytest.approx(0.095)

    def test_derivative_by_differencing(self, make_component, store: PropertyStore) -> None:
        """Test the derivative of the input."""
        controller = pid(make_component, "<kd>1</kd>")
        controller.run()

        store.set_double_value("ap/err", 0.1)
        controller.run()

        assert controller.output == pytest.approx(10.0)

    def test_pvdot(self, make_component, store: PropertyStore) -> None:
        """Test <pvdot> replaces the differenced derivative."""
        controller = pid(make_component, "<kd>2</kd><pvdot>ap/rate</pvdot>")
        store.set_double_value("ap/err", 5.0)
        store.set_double_value("ap/rate", 0.5)

        controller.run()

        assert controller.output == 1.0


class TestIntegratorControl:
    """Test anti-windup and reset."""

    def test_trigger_freezes(self, make_component, store: PropertyStore) -> None:
        """Test a trigger holds the integral."""
        controller = pid(make_component, "<ki>1</ki><trigger>ap/windup</trigger>")
        store.set_double_value("ap/err", 1.0)
        run(controller, 5)

        store.set_double_value("ap/windup", 1.0)
        run(controller, 5)

        assert controller.integral == pytest.approx(0.05)

    def test_reset_clears(self, make_component, store: PropertyStore) -> None:
        """Test a reset zeroes the integral."""
        controller = pid(make_component, "<ki>1</ki><reset>ap/reset</reset>")
        store.set_double_value("ap/err", 1.0)
        run(controller, 5)

        store.set_double_value("ap/reset", 1.0)
        controller.run()

        assert controller.integral == 0.0
        assert controller.output == 0.0

    def test_unknown_integration(self, make_component) -> None:
        """Test an unknown integration type is rejected."""
        with pytest.raises(StructuralConfigError, match="unknown integration type"):
            pid(make_component, "<integ_type>euler</integ_type>")


class TestFunctionComponent:
    """Test the fcs_function component."""

    def test_function_value(self, make_component, store: PropertyStore) -> None:
        """Test the output is the function value."""
        component = make_component(
            '<fcs_function name="fcs/schedule"><function>'
            "<product><p>ap/a</p><v>3</v></product></function></fcs_function>"
        )
        store.set_double_value("ap/a", 2.0)

        component.run()

        assert component.output == 6.0
        assert store.get_double_value("fcs/schedule") == 6.0

    def test_input_multiplies(self, make_component, store: PropertyStore) -> None:
        """Test an input scales the function value."""
        component = make_component(
            '<fcs_function name="f"><input>ap/k</input>'
            "<function><v>3</v></function></fcs_function>"
        )
        store.set_double_value("ap/k", 0.5)

        component.run()

        assert component.output == 1.5

    def test_function_required(self, make_component) -> None:
        """Test a function component without function is rejected."""
        with pytest.raises(StructuralConfigError, match="has no <function>"):
            make_component('<fcs_function name="f"><input>a</input></fcs_function>')
