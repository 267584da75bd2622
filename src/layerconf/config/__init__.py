"""
Layered configuration engine.

Provides ordered source merging into a flat, concurrently-readable store,
typed access, dataclass binding, rule validation and debounced hot reload.
"""

from .manager import ConfigManager
from .flatten import flatten, unflatten, KEY_SEPARATOR
from .coercion import Kind, ValueKind, kind_of, resolve_kind, coerce, parse_duration, parse_default, render
from .accessor import get, get_or, must_get
from .schemas import config_field, FieldSpec, describe
from .binding import bind
from .validation import (
    ConfigValidator, Rule, ValidationType, parse_rule_expression,
    rules_from_schema, validate, validate_schema
)
from .signals import ChangeKind, ChangeEvent, ChangeSink, ChangeSignal, WatchdogSignal
from .watcher import ChangeWatcher, WatcherState, DEFAULT_DEBOUNCE
from .sources import (
    Source, DefaultsSource, YamlFileSource, JsonFileSource, TomlFileSource,
    DotEnvSource, EnvSource, FlagSource, register_flags, file_source
)
from ..core.exceptions import (
    ConfigurationError, KeyNotFoundError, TypeMismatchError, FieldError,
    ValidationError, SchemaError, SourceLoadError, BindError, WatchError,
    FatalConfigError
)

__all__ = [
    # Merge engine
    "ConfigManager",

    # Key paths
    "flatten",
    "unflatten",
    "KEY_SEPARATOR",

    # Coercion and typed access
    "Kind",
    "ValueKind",
    "kind_of",
    "resolve_kind",
    "coerce",
    "parse_duration",
    "parse_default",
    "render",
    "get",
    "get_or",
    "must_get",

    # Schemas and binding
    "config_field",
    "FieldSpec",
    "describe",
    "bind",

    # Validation
    "ConfigValidator",
    "Rule",
    "ValidationType",
    "parse_rule_expression",
    "rules_from_schema",
    "validate",
    "validate_schema",

    # Change watching
    "ChangeKind",
    "ChangeEvent",
    "ChangeSink",
    "ChangeSignal",
    "WatchdogSignal",
    "ChangeWatcher",
    "WatcherState",
    "DEFAULT_DEBOUNCE",

    # Sources
    "Source",
    "DefaultsSource",
    "YamlFileSource",
    "JsonFileSource",
    "TomlFileSource",
    "DotEnvSource",
    "EnvSource",
    "FlagSource",
    "register_flags",
    "file_source",

    # Errors
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
