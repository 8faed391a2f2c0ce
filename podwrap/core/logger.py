"""Logging for podwrap: rich console output plus an optional log file.

Every module logs through ``get_logger(__name__)``. Levels are set once on the
``podwrap`` package logger and inherited by module loggers, so switching to
debug works for modules imported after the switch too.
"""
import logging
import tempfile
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "podwrap"

# Logs go to stderr so program output on stdout stays clean
console = Console(stderr=True)

LOG_DIR = Path.home() / ".local" / "state" / "podwrap"
LOG_FILE = LOG_DIR / "podwrap.log"

_console_handler: Optional[RichHandler] = None
_file_handler: Optional[logging.FileHandler] = None


def _package_logger() -> logging.Logger:
    """The ``podwrap`` logger, carrying the console handler and the level."""
    global _console_handler

    package = logging.getLogger(PACKAGE_LOGGER)
    if _console_handler is None:
        _console_handler = RichHandler(console=console, show_path=False)
        _console_handler.setFormatter(logging.Formatter("%(message)s"))
        package.addHandler(_console_handler)
        package.propagate = False
        if package.level == logging.NOTSET:
            package.setLevel(logging.INFO)
    return package


def set_console_level(verbose: bool = False) -> None:
    """Switch podwrap logging between INFO and DEBUG."""
    _package_logger().setLevel(logging.DEBUG if verbose else logging.INFO)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Also write podwrap logs to a file.

    Args:
        log_file: Path to log file (defaults to ~/.local/state/podwrap/podwrap.log)
        verbose: Record debug messages in the file

    Returns:
        Path of the log file in use. Falls back to the system temp dir when
        the log directory cannot be created.
    """
    global _file_handler

    package = _package_logger()
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)

    target = Path(log_file) if log_file else LOG_FILE
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target = Path(tempfile.gettempdir()) / "podwrap.log"

    _file_handler = logging.FileHandler(target)
    _file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    package.addHandler(_file_handler)

    if verbose:
        package.setLevel(logging.DEBUG)
    _file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    package.info(f"podwrap logging initialized: {target}")
    return target


def get_logger(name: str) -> logging.Logger:
    """Logger for a podwrap module.

    Module loggers keep level NOTSET and propagate to the package logger,
    which owns the handlers.
    """
    _package_logger()
    return logging.getLogger(name)
