"""Tests for configuration functions."""

import math

import pytest

from flightlaw.core.document import parse_xml_string
from flightlaw.core.properties import PropertyStore
from flightlaw.fcs.errors import StructuralConfigError
from flightlaw.fcs.function import Function, build_expression


def evaluate(text: str, store: PropertyStore) -> float:
    return build_expression(parse_xml_string(text), store)()


class TestOperations:
    """Test individual operations."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("<sum><v>1</v><v>2</v><v>3.5</v></sum>", 6.5),
            ("<difference><v>10</v><v>3</v><v>2</v></difference>", 5.0),
            ("<product><v>2</v><v>-4</v></product>", -8.0),
            ("<quotient><v>9</v><v>3</v></quotient>", 3.0),
            ("<pow><v>2</v><v>10</v></pow>", 1024.0),
            ("<abs><v>-3</v></abs>", 3.0),
            ("<min><v>4</v><v>-1</v><v>2</v></min>", -1.0),
            ("<max><v>4</v><v>-1</v><v>2</v></max>", 4.0),
            ("<avg><v>1</v><v>2</v><v>6</v></avg>", 3.0),
            ("<fraction><v>2.75</v></fraction>", 0.75),
            ("<integer><v>-2.75</v></integer>", -2.0),
            ("<mod><v>7</v><v>3</v></mod>", 1.0),
            ("<sign><v>-0.2</v></sign>", -1.0),
            ("<todegrees><v>3.141592653589793</v></todegrees>", 180.0),
            ("<lt><v>1</v><v>2</v></lt>", 1.0),
            ("<ge><v>1</v><v>2</v></ge>", 0.0),
            ("<nq><v>1</v><v>2</v></nq>", 1.0),
            ("<and><v>1</v><v>0</v></and>", 0.0),
            ("<or><v>1</v><v>0</v></or>", 1.0),
            ("<not><v>0</v></not>", 1.0),
            ("<atan2><v>1</v><v>1</v></atan2>", math.pi / 4),
        ],
    )
    def test_values(self, store: PropertyStore, text: str, expected: float) -> None:
        """Test each operation's result."""
        assert evaluate(text, store) == pytest.approx(expected)

    def test_property_and_table_operands(self, store: PropertyStore) -> None:
        """Test property, value and table operands mix."""
        store.set_double_value("aero/qbar-psf", 20.0)
        store.set_double_value("aero/alpha-deg", 5.0)
        text = """
        <product>
          <property>aero/qbar-psf</property>
          <value>0.5</value>
          <table>
            <independentVar>aero/alpha-deg</independentVar>
            <tableData>
              0  0.0
              10 1.0
            </tableData>
          </table>
        </product>
        """

        assert evaluate(text, store) == pytest.approx(5.0)

    def test_ifthen_is_lazy(self, store: PropertyStore) -> None:
        """Test only the selected branch is evaluated."""
        text = (
            "<ifthen><p>ap/master</p><v>1</v>"
            "<quotient><v>1</v><v>0</v></quotient></ifthen>"
        )
        store.set_double_value("ap/master", 1.0)

        assert evaluate(text, store) == 1.0

        store.set_double_value("ap/master", 0.0)
        assert evaluate(text, store) == math.inf


class TestTotality:
    """Test domain errors never raise."""

    @pytest.mark.parametrize(
        ("text", "check"),
        [
            ("<quotient><v>-1</v><v>0</v></quotient>", lambda x: x == -math.inf),
            ("<quotient><v>0</v><v>0</v></quotient>", math.isnan),
            ("<pow><v>-8</v><v>0.5</v></pow>", math.isnan),
            ("<ln><v>0</v></ln>", lambda x: x == -math.inf),
            ("<log10><v>-1</v></log10>", math.isnan),
            ("<exp><v>1000</v></exp>", lambda x: x == math.inf),
            ("<mod><v>1</v><v>0</v></mod>", math.isnan),
            ("<mod><v>inf</v><v>2</v></mod>", math.isnan),
            ("<asin><v>2</v></asin>", lambda x: x == pytest.approx(math.pi / 2)),
            ("<acos><v>-5</v></acos>", lambda x: x == pytest.approx(math.pi)),
            ("<sum><v>1e308</v><v>1e308</v></sum>", lambda x: x == math.inf),
            ("<difference><v>1e308</v><v>-1e308</v></difference>", lambda x: x == math.inf),
            ("<avg><v>1e308</v><v>1e308</v></avg>", lambda x: x == math.inf),
        ],
    )
    def test_domain_errors(self, store: PropertyStore, text: str, check) -> None:
        """Test out-of-domain inputs give inf, nan or a clamped result."""
        assert check(evaluate(text, store))


class TestStructure:
    """Test compile-time validation."""

    @pytest.mark.parametrize(
        "text",
        [
            "<quotient><v>1</v></quotient>",
            "<abs><v>1</v><v>2</v></abs>",
            "<ifthen><v>1</v><v>2</v></ifthen>",
            "<sum/>",
        ],
    )
    def test_argument_counts(self, store: PropertyStore, text: str) -> None:
        """Test wrong argument counts raise StructuralConfigError."""
        with pytest.raises(StructuralConfigError, match="argument"):
            evaluate(text, store)

    def test_unknown_operation(self, store: PropertyStore) -> None:
        """Test unknown operations raise StructuralConfigError."""
        with pytest.raises(StructuralConfigError, match="Unknown function operation"):
            evaluate("<integrate><v>1</v></integrate>", store)

    def test_non_numeric_value(self, store: PropertyStore) -> None:
        """Test a non-numeric <value> raises StructuralConfigError."""
        with pytest.raises(StructuralConfigError):
            evaluate("<value>fast</value>", store)


class TestFunction:
    """Test named functions."""

    def test_run_caches_and_publishes(self, store: PropertyStore) -> None:
        """Test run() caches the value under the function's name."""
        store.set_double_value("ap/x", 2.0)
        function = Function(
            parse_xml_string(
                '<function name="ap/doubled"><product><p>ap/x</p><v>2</v></product></function>'
            ),
            store,
        )
        function.bind()

        assert store.get_double_value("ap/doubled") == 0.0
        assert function.run() == 4.0
        assert store.get_double_value("ap/doubled") == 4.0

        store.set_double_value("ap/x", 3.0)
        assert function.get_value() == 6.0
        assert function.value == 4.0

    def test_published_property_is_read_only(self, store: PropertyStore) -> None:
        """Test the published property cannot be overwritten."""
        function = Function(parse_xml_string('<function name="f"><v>1</v></function>'), store)
        function.bind()
        function.run()

        store.set_double_value("f", 5.0)

        assert store.get_double_value("f") == 1.0

    def test_unbind_releases_name(self, store: PropertyStore) -> None:
        """Test unbind frees the name for another binding."""
        element = parse_xml_string('<function name="f"><v>1</v></function>')
        first = Function(element, store)
        first.bind()

        second = Function(element, store)
        with pytest.raises(StructuralConfigError, match="already tied"):
            second.bind()

        first.unbind()
        second.bind()
        assert store.is_tied("f")

    def test_exactly_one_expression(self, store: PropertyStore) -> None:
        """Test a function holds exactly one expression."""
        with pytest.raises(StructuralConfigError, match="exactly one"):
            Function(parse_xml_string("<function><v>1</v><v>2</v></function>"), store)

    def test_unnamed_function(self, store: PropertyStore) -> None:
        """Test an unnamed function binds nothing."""
        function = Function(parse_xml_string("<function><v>1</v></function>"), store)
        function.bind()

        assert function.run() == 1.0
        assert store.snapshot() == {}
