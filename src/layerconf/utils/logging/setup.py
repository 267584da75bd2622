"""
Logging setup and configuration utilities.

This module provides functions for setting up logging for applications
embedding layerconf and for the command-line tool.
"""

import logging
import logging.config
from typing import Dict, Any, Optional
from pathlib import Path
import sys

from .formatters import CustomFormatter, JSONFormatter


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    log_level: str = "INFO",
    log_format: str = "standard",
    enable_json_logs: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Set up logging configuration.

    Args:
        config: Optional logging configuration dictionary (dictConfig)
        log_level: Default logging level
        log_format: Format style ('standard', 'detailed', 'minimal')
        enable_json_logs: Enable JSON formatted logs
        log_file: Optional file to log to in addition to stderr
    """
    if config:
        # Use provided configuration
        logging.config.dictConfig(config)
        return

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    if enable_json_logs:
        formatter = JSONFormatter()
    else:
        formatter = CustomFormatter(format_style=log_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # watchdog is chatty at DEBUG
    logging.getLogger('watchdog').setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging system initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def enable_debug_logging(component: Optional[str] = None) -> None:
    """
    Enable debug logging for a specific component or all components.

    Args:
        component: Optional component name, e.g. 'config.watcher' (None for all)
    """
    name = f'layerconf.{component}' if component else 'layerconf'
    logging.getLogger(name).setLevel(logging.DEBUG)
