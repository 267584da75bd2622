"""
layerconf: Layered Configuration Engine

Merges configuration values from ordered sources into a single
concurrently-readable store, with typed access, dataclass binding,
declarative validation and debounced hot reload.
"""

from ._version import __version__

__author__ = "layerconf developers"

# Core imports - Public API (lazy loading)
def __getattr__(name: str):
    """Lazy import for public API components."""
    if name in ("ConfigManager",):
        from .config.manager import ConfigManager
        return ConfigManager
    elif name in ("ChangeWatcher", "WatcherState"):
        from .config import watcher
        return getattr(watcher, name)
    elif name in ("Kind", "coerce", "parse_duration"):
        from .config import coercion
        return getattr(coercion, name)
    elif name in ("flatten", "unflatten"):
        from .config.flatten import flatten, unflatten
        return flatten if name == "flatten" else unflatten
    elif name in ("config_field", "describe"):
        from .config import schemas
        return getattr(schemas, name)
    elif name == "bind":
        from .config.binding import bind
        return bind
    elif name in ("Rule", "validate", "validate_schema"):
        from .config import validation
        return getattr(validation, name)
    else:
        from .core import exceptions
        if name in exceptions.__all__:
            return getattr(exceptions, name)

        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


# Public API
__all__ = [
    # Core classes
    "ConfigManager",
    "ChangeWatcher",
    "WatcherState",

    # Functions
    "Kind",
    "coerce",
    "parse_duration",
    "flatten",
    "unflatten",
    "config_field",
    "describe",
    "bind",
    "Rule",
    "validate",
    "validate_schema",

    # Exceptions
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

    # Package info
    "__version__",
    "__author__",
]

# Package configuration
import logging

# Set up default logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

def get_version():
    """Get package version."""
    return __version__
