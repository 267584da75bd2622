"""
Logging utilities.
"""

from .formatters import CustomFormatter, JSONFormatter
from .setup import setup_logging, get_logger, enable_debug_logging

__all__ = [
    'CustomFormatter',
    'JSONFormatter',
    'setup_logging',
    'get_logger',
    'enable_debug_logging',
]
