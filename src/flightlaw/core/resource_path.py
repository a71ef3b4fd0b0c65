"""Resource path resolution for bundled data and aircraft system files.

This module resolves paths whether running from source or from a packaged
application (PyInstaller bundle), and implements the search used to locate
system definition files referenced by an aircraft.

Typical usage:
    from flightlaw.core.resource_path import find_system_file, get_systems_dir

    path = find_system_file("autopilot", aircraft_dir, get_systems_dir())
"""

import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

SYSTEM_FILE_SUFFIX = ".xml"
AIRCRAFT_SYSTEMS_SUBDIR = "Systems"


def is_bundled() -> bool:
    """Check if running from a PyInstaller bundle."""
    return hasattr(sys, "_MEIPASS")


def get_project_root() -> Path:
    """Get the project root directory.

    Returns:
        Path to project root:
        - When running from source: The actual project root directory
        - When bundled: The temporary bundle directory containing resources
    """
    if is_bundled():
        return Path(getattr(sys, "_MEIPASS"))
    # src/flightlaw/core -> project root
    return Path(__file__).parent.parent.parent.parent


def get_resource_path(relative_path: str) -> Path:
    """Get absolute path to a resource file or directory.

    Args:
        relative_path: Relative path from project root (e.g., "config/logging.yaml")

    Returns:
        Absolute path to the resource.
    """
    return get_project_root() / relative_path


def get_config_path(config_file: str) -> Path:
    """Get path to a configuration file under config/."""
    return get_resource_path(f"config/{config_file}")


def get_systems_dir() -> Path:
    """Get the shared systems-library directory.

    Returns:
        Path to the directory holding system files shared by all aircraft.
    """
    return get_resource_path("systems")


def system_file_name(name: str) -> str:
    """Append the system file suffix when it is missing.

    Examples:
        >>> system_file_name("autopilot")
        'autopilot.xml'
        >>> system_file_name("yaw_damper.xml")
        'yaw_damper.xml'
    """
    if name.endswith(SYSTEM_FILE_SUFFIX):
        return name
    return name + SYSTEM_FILE_SUFFIX


def system_search_paths(
    name: str, aircraft_dir: str | Path | None, systems_dir: str | Path | None
) -> list[Path]:
    """List the candidate locations of a system file, in search order.

    The order is: the aircraft's own Systems/ directory, the shared
    systems library, then the aircraft root directory. Missing base
    directories are left out.

    Args:
        name: System file name, with or without suffix.
        aircraft_dir: Aircraft root directory.
        systems_dir: Shared systems-library directory.

    Returns:
        Candidate paths; the first existing one wins.
    """
    filename = system_file_name(name)
    candidates: list[Path] = []

    if aircraft_dir is not None:
        candidates.append(Path(aircraft_dir) / AIRCRAFT_SYSTEMS_SUBDIR / filename)
    if systems_dir is not None:
        candidates.append(Path(systems_dir) / filename)
    if aircraft_dir is not None:
        candidates.append(Path(aircraft_dir) / filename)

    return candidates


def find_system_file(
    name: str, aircraft_dir: str | Path | None, systems_dir: str | Path | None
) -> Path | None:
    """Locate a system file.

    Args:
        name: System file name, with or without suffix.
        aircraft_dir: Aircraft root directory.
        systems_dir: Shared systems-library directory.

    Returns:
        Path of the first existing candidate, or None if none exists.

    Examples:
        >>> find_system_file("autopilot", "aircraft/c172", "systems")
        PosixPath('aircraft/c172/Systems/autopilot.xml')
    """
    candidates = system_search_paths(name, aircraft_dir, systems_dir)

    for candidate in candidates:
        if candidate.is_file():
            logger.debug("Resolved system file %s -> %s", name, candidate)
            return candidate

    logger.error(
        "Could not open system file %s in %s",
        system_file_name(name),
        ", ".join(str(c.parent) for c in candidates) or "<no search path>",
    )
    return None
