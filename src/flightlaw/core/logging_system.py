"""Logging system for the flight control engine and its tools.

This module provides a flexible logging system with YAML configuration,
per-component loggers, platform-aware log locations, and startup-based rotation.

Platform-specific log locations:
    - macOS: ~/Library/Logs/FlightLaw/flightlaw.log
    - Linux: ~/.flightlaw/logs/flightlaw.log
    - Windows: %AppData%/FlightLaw/Logs/flightlaw.log

Each start rotates logs, keeping the last 5 runs.

Typical usage example:
    from flightlaw.core.logging_system import get_logger

    class MyComponent:
        def __init__(self):
            self._log = get_logger("my_component")

        def process(self):
            self._log.info("Processing started")
            self._log.debug("Debug details: %s", data)
"""

import logging
import logging.handlers
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

# Global configuration
_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_initialized = False


class LoggingError(Exception):
    """Raised when logging system operations fail."""


def get_platform_log_dir() -> Path:
    """Get platform-specific log directory.

    Returns:
        Path to the platform-appropriate log directory:
        - macOS: ~/Library/Logs/FlightLaw
        - Linux: ~/.flightlaw/logs
        - Windows: %AppData%/FlightLaw/Logs

    Examples:
        >>> log_dir = get_platform_log_dir()
        >>> print(log_dir)
        PosixPath('/home/username/.flightlaw/logs')
    """
    system = platform.system()

    if system == "Darwin":  # macOS
        return Path.home() / "Library" / "Logs" / "FlightLaw"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "FlightLaw" / "Logs"
    else:  # Linux and other Unix-like systems
        return Path.home() / ".flightlaw" / "logs"


def rotate_logs(log_dir: Path, log_filename: str = "flightlaw.log", keep_count: int = 5) -> None:
    """Rotate logs on startup, keeping the last N runs.

    Renames current log to flightlaw.log.1, shifts older logs, and deletes
    logs beyond keep_count.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file (default: "flightlaw.log").
        keep_count: Number of old logs to keep (default: 5).
    """
    log_file = log_dir / log_filename

    if not log_file.exists():
        return

    oldest_log = log_dir / f"{log_filename}.{keep_count}"
    if oldest_log.exists():
        oldest_log.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        new_log = log_dir / f"{log_filename}.{i + 1}"
        if old_log.exists():
            old_log.rename(new_log)

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(
    config_path: str | Path | None = None, use_platform_dir: bool = True
) -> None:
    """Initialize the logging system from YAML configuration.

    This should be called once at startup before any logging occurs.
    Automatically rotates logs on startup, keeping the last 5 runs.

    Args:
        config_path: Path to logging configuration YAML file.
            If None, uses default configuration.
        use_platform_dir: If True, use platform-specific log directory.
            If False, use directory from config (for development/testing).

    Raises:
        LoggingError: If initialization fails.

    Examples:
        >>> initialize_logging("config/logging.yaml")
        >>> log = get_logger("fcs")
        >>> log.info("Logging initialized")
    """
    global _logging_config, _initialized

    if config_path:
        try:
            config_path = Path(config_path)
            if not config_path.exists():
                raise LoggingError(f"Logging config file not found: {config_path}")

            with config_path.open("r", encoding="utf-8") as f:
                _logging_config = yaml.safe_load(f) or {}

        except LoggingError:
            raise
        except Exception as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    _setup_directories()

    log_dir = Path(_logging_config.get("log_dir", "logs"))
    log_filename = _logging_config.get("combined_log", {}).get("filename", "flightlaw.log")
    keep_count = _logging_config.get("combined_log", {}).get("backup_count", 5)
    rotate_logs(log_dir, log_filename, keep_count)

    _configure_root_logger()

    # Component levels from a previous configuration must not leak through.
    for name in list(_loggers_cache):
        _apply_component_config(_loggers_cache[name], name)

    _initialized = True


def _get_default_config() -> dict[str, Any]:
    """Get default logging configuration.

    Returns:
        Default logging configuration dictionary.
    """
    return {
        "version": 1,
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "combined_log": {
            "enabled": True,
            "filename": "flightlaw.log",
            "backup_count": 5,
        },
        "console": {
            "enabled": True,
            "level": "WARNING",
        },
        "components": {},
    }


def _setup_directories() -> None:
    """Create log directories if they don't exist."""
    log_dir = Path(_logging_config.get("log_dir", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)


def _configure_root_logger() -> None:
    """Configure the root logger with handlers."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter in handlers

    # Only drop the handlers this module installed; test runners keep theirs.
    for handler in list(root_logger.handlers):
        if getattr(handler, "_flightlaw_handler", False):
            root_logger.removeHandler(handler)
            handler.close()

    if _logging_config.get("console", {}).get("enabled", True):
        console_handler = logging.StreamHandler()
        console_level = _logging_config.get("console", {}).get("level", "WARNING")
        console_handler.setLevel(getattr(logging, console_level))
        console_handler.setFormatter(_get_formatter())
        console_handler._flightlaw_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

    if _logging_config.get("combined_log", {}).get("enabled", True):
        combined_config = _logging_config.get("combined_log", {})
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        log_file = log_dir / combined_config.get("filename", "flightlaw.log")

        # Rotation happens on startup, not by size
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(getattr(logging, _logging_config.get("level", "INFO")))
        file_handler.setFormatter(_get_formatter())
        file_handler._flightlaw_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(file_handler)


class MillisecondFormatter(logging.Formatter):
    """Formatter that shows milliseconds with dot separator."""

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        if datefmt:
            s = time.strftime(datefmt, ct)
        else:
            s = time.strftime("%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    fmt = _logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    datefmt = _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S")
    return MillisecondFormatter(fmt, datefmt)


def _apply_component_config(logger: logging.Logger, name: str) -> None:
    """Apply the per-component section of the configuration to a logger."""
    component_config = _logging_config.get("components", {}).get(name, {})

    logger.disabled = not component_config.get("enabled", True)
    if "level" in component_config:
        logger.setLevel(getattr(logging, component_config["level"]))
    else:
        logger.setLevel(logging.NOTSET)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component or module.

    Loggers are cached and reused. Each logger can have its own level
    specified in the logging config YAML under the 'components' section.

    Args:
        name: Logger name (typically module or component name).

    Returns:
        Configured logger instance.

    Examples:
        >>> log = get_logger("flightlaw.fcs.channel")
        >>> log.info("Channel ready")
        >>> log.error("Throttle %d does not exist", 5)

    Note:
        Use lazy formatting (%) instead of f-strings.
    """
    if not _initialized:
        initialize_logging()

    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = logging.getLogger(name)
    _apply_component_config(logger, name)

    _loggers_cache[name] = logger
    return logger


def shutdown_logging() -> None:
    """Shutdown the logging system gracefully.

    Flushes all handlers and closes log files.
    """
    global _initialized

    logging.shutdown()
    _loggers_cache.clear()
    _initialized = False


class LoggerMixin:
    """Mixin class to easily add logging to any class.

    Classes can inherit from this mixin to get a logger instance
    available as self._log.

    Examples:
        >>> class MyComponent(LoggerMixin):
        ...     def __init__(self):
        ...         self.attach_logger("my_component")
        ...
        ...     def process(self):
        ...         self.log_info("Processing")
    """

    def attach_logger(self, name: str) -> None:
        """Attach a logger to this instance.

        Args:
            name: Logger name to use.
        """
        self._log = get_logger(name)

    def log_debug(self, message: str, *args: Any) -> None:
        if hasattr(self, "_log"):
            self._log.debug(message, *args)

    def log_info(self, message: str, *args: Any) -> None:
        if hasattr(self, "_log"):
            self._log.info(message, *args)

    def log_warning(self, message: str, *args: Any) -> None:
        if hasattr(self, "_log"):
            self._log.warning(message, *args)

    def log_error(self, message: str, *args: Any, exc_info: bool = False) -> None:
        """Log an error message.

        Args:
            message: Message format string.
            *args: Arguments for formatting.
            exc_info: Include exception traceback if True.
        """
        if hasattr(self, "_log"):
            self._log.error(message, *args, exc_info=exc_info)
