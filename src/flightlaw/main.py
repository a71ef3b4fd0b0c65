"""flightlaw - flight control law runner.

Main entry point for the application. Builds an aircraft from its YAML
definition, applies property values given on the command line, runs the
control laws for a number of frames and prints the resulting properties.

Typical usage:
    python -m flightlaw.main aircraft/trainer/trainer.yaml --steps 600
    python -m flightlaw.main trainer.yaml --set ap/master=1 --print fcs/aileron-pos-rad
    python -m flightlaw.main trainer.yaml --realtime 10
"""

import argparse
import sys
from collections.abc import Sequence

from flightlaw.aircraft.aircraft import Aircraft
from flightlaw.aircraft.builder import AircraftBuilder
from flightlaw.core.config import ConfigError
from flightlaw.core.logging_system import get_logger, initialize_logging, shutdown_logging
from flightlaw.core.resource_path import get_config_path, get_systems_dir
from flightlaw.core.sim_loop import SimulationLoop
from flightlaw.fcs.errors import StructuralConfigError

logger = get_logger(__name__)


class FlightLaw:
    """Command-line application: build, run and report.

    Examples:
        >>> app = FlightLaw(parse_args(["trainer.yaml", "--steps", "120"]))
        >>> app.run()
    """

    def __init__(self, args: argparse.Namespace) -> None:
        """Initialize the application.

        Args:
            args: Parsed command line arguments.
        """
        self.args = args

        # Initialize logging first
        if args.log_config:
            initialize_logging(args.log_config, use_platform_dir=False)
        else:
            logging_config = get_config_path("logging.yaml")
            if logging_config.exists():
                initialize_logging(str(logging_config), use_platform_dir=True)
            else:
                initialize_logging(use_platform_dir=True)
        logger.info("flightlaw starting up...")

        self.aircraft: Aircraft | None = None
        self.loop: SimulationLoop | None = None

    def build(self) -> Aircraft:
        """Build the aircraft and apply the --set values.

        Without --systems-path the bundled systems library is searched.
        """
        systems_path = self.args.systems_path or get_systems_dir()
        aircraft = AircraftBuilder(systems_path).build(self.args.aircraft)
        for path, value in self.args.set or []:
            logger.info("Setting %s = %g", path, value)
            aircraft.set_property(path, value)
        self.aircraft = aircraft
        return aircraft

    def run(self) -> None:
        """Build the aircraft, run the frames and print the report."""
        aircraft = self.build()
        self.loop = SimulationLoop(aircraft, dt=aircraft.fcs.delta_t)

        if self.args.realtime is not None:
            self.loop.run_realtime(self.args.realtime)
        else:
            self.loop.run_steps(self.args.steps)

        logger.info(
            "Ran %d frame(s), %.3fs simulated", self.loop.frame_count, self.loop.sim_time
        )
        for line in self.report():
            print(line)

    def report(self) -> list[str]:
        """Lines describing the requested properties.

        Without --print, every component output is listed in execution
        order.
        """
        if self.aircraft is None:
            return []

        if self.args.print:
            return [
                f"{path} = {self.aircraft.get_property(path):.9g}"
                if self.aircraft.properties.has_node(path)
                else f"{path} = <undefined>"
                for path in self.args.print
            ]

        return [
            f"{component.name} = {component.output:.9g}"
            for component in self.aircraft.fcs.iter_components()
        ]

    def shutdown(self) -> None:
        logger.info("Shutdown complete")
        shutdown_logging()


def property_assignment(text: str) -> tuple[str, float]:
    """Parse a path=value command line assignment.

    Raises:
        argparse.ArgumentTypeError: If the text is not a valid assignment.
    """
    path, sep, raw = text.partition("=")
    path = path.strip()
    if not sep or not path:
        raise argparse.ArgumentTypeError(f"expected path=value, got {text!r}")
    try:
        return path, float(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid value for {path}: {raw!r}") from e


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Arguments without the program name; sys.argv when None.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="flightlaw - flight control law runner")

    parser.add_argument("aircraft", help="Aircraft definition YAML file")

    parser.add_argument(
        "--steps",
        type=int,
        default=1,
        help="Number of frames to run (default: 1)",
    )

    parser.add_argument(
        "--realtime",
        type=float,
        metavar="SECONDS",
        help="Run paced against the wall clock for this many seconds instead of --steps",
    )

    parser.add_argument(
        "--set",
        type=property_assignment,
        action="append",
        metavar="PATH=VALUE",
        help="Property value applied before the first frame (repeatable)",
    )

    parser.add_argument(
        "--print",
        action="append",
        metavar="PATH",
        help="Property printed after the run (repeatable; default: every component)",
    )

    parser.add_argument(
        "--systems-path",
        type=str,
        help="Shared systems-library directory",
    )

    parser.add_argument(
        "--log-config",
        type=str,
        help="Logging configuration YAML file",
    )

    args = parser.parse_args(argv)
    if args.steps < 0:
        parser.error("--steps must not be negative")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success).
    """
    args = parse_args(argv)
    app = FlightLaw(args)
    try:
        app.run()
        return 0
    except (ConfigError, StructuralConfigError) as e:
        logger.error("Could not build aircraft: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.exception("Fatal error: %s", e)
        return 1
    finally:
        app.shutdown()


if __name__ == "__main__":
    sys.exit(main())
