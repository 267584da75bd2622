"""
Core infrastructure shared by the configuration engine.

Currently hosts the exception hierarchy.
"""

from .exceptions import (
    LayerConfError,
    ConfigurationError,
    KeyNotFoundError,
    TypeMismatchError,
    FieldError,
    ValidationError,
    SchemaError,
    SourceLoadError,
    BindError,
    WatchError,
    FatalConfigError,
)

__all__ = [
    "LayerConfError",
    "ConfigurationError",
    "KeyNotFoundError",
    "TypeMismatchError",
    "FieldError",
    "ValidationError",
    "SchemaError",
    "SourceLoadError",
    "BindError",
    "WatchError",
    "FatalConfigError",
]
