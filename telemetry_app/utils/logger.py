"""
Logging configuration for the telemetry dashboard.

All modules obtain loggers through :func:`get_logger`. Handlers are attached
once to the package root logger ("telemetry_app"); module loggers propagate
to it.
"""

import logging
import sys
from typing import Optional, Union

ROOT_LOGGER = "telemetry_app"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to the package root logger)

    Returns:
        Configured logger instance
    """
    root = _configure_root()
    if not name or name == ROOT_LOGGER:
        return root
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_level(level: Union[int, str]) -> None:
    """Set the level of the package root logger (e.g. from config)."""
    if isinstance(level, str):
        level = level.upper()
    _configure_root().setLevel(level)
