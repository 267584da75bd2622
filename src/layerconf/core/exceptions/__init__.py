"""
Exception hierarchy for layerconf.

Provides an organized exception system with proper inheritance and
context information for debugging and error handling.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass
import traceback
import time

class LayerConfError(Exception):
    """Root exception for all layerconf errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = time.time()
        self.traceback_str = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp,
            "traceback": self.traceback_str,
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            base += f" (Context: {self.context})"
        if self.cause:
            base += f" (Caused by: {self.cause})"
        return base

# Configuration-related errors
class ConfigurationError(LayerConfError):
    """Configuration-related issues."""
    pass

class KeyNotFoundError(ConfigurationError):
    """Typed lookup on a key that is not in the store."""

    def __init__(self, key: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"key not found: {key}", context)
        self.key = key

class TypeMismatchError(ConfigurationError):
    """Stored value cannot be coerced to the requested kind."""

    def __init__(self, expected: str, actual: Any, key: Optional[str] = None,
                 detail: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        if key is None:
            message = f"cannot convert {type(actual).__name__} {actual!r} to {expected}"
        else:
            message = (f"type mismatch for key {key!r}: expected {expected}, "
                       f"got {type(actual).__name__}")
        if detail:
            message += f" ({detail})"
        super().__init__(message, context)
        self.key = key
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            "key": self.key,
            "expected": self.expected,
            "actual_type": type(self.actual).__name__
        })
        return result

@dataclass(frozen=True)
class FieldError:
    """A single rule violation for one configuration key."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"

class ValidationError(ConfigurationError):
    """All rule violations found in one validation pass."""

    def __init__(self, errors: List[FieldError], context: Optional[Dict[str, Any]] = None,
                 cause: Optional[BaseException] = None):
        message = "validation failed: " + "; ".join(str(error) for error in errors)
        super().__init__(message, context, cause)
        self.errors = list(errors)

    @property
    def fields(self) -> List[str]:
        """Keys that failed, in evaluation order."""
        return [error.field for error in self.errors]

    def __len__(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["validation_errors"] = [
            {"field": error.field, "message": error.message} for error in self.errors
        ]
        return result

class SchemaError(ConfigurationError):
    """Malformed schema description or rule expression."""
    pass

class SourceLoadError(ConfigurationError):
    """A configuration source failed to produce its tree."""

    def __init__(self, source: str, cause: Optional[BaseException] = None,
                 message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message or f"source {source} failed to load", context, cause)
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["source"] = self.source
        return result

class BindError(ConfigurationError):
    """First failure encountered while populating a schema."""

    def __init__(self, field: str, key: Optional[str], cause: BaseException,
                 from_default: bool = False):
        what = "default" if from_default else "value"
        super().__init__(f"bind: field {field} {what}: {cause}", {"key": key}, cause)
        self.field = field
        self.key = key
        self.from_default = from_default

class WatchError(ConfigurationError):
    """Change watching could not be started or is misused."""
    pass

class FatalConfigError(RuntimeError):
    """
    Unrecoverable configuration failure raised by must_get.

    Not part of the LayerConfError tree, so handlers for ordinary
    configuration errors do not absorb it.
    """

    def __init__(self, cause: LayerConfError):
        super().__init__(f"layerconf: {cause.message}")
        self.cause = cause

# Utility functions for exception handling
def create_error_context(
    component: str,
    operation: str,
    parameters: Optional[Dict[str, Any]] = None,
    additional_info: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create standardized error context."""
    context = {
        "component": component,
        "operation": operation,
        "timestamp": time.time()
    }

    if parameters:
        context["parameters"] = parameters

    if additional_info:
        context.update(additional_info)

    return context

def wrap_exception(original_exception: BaseException, new_exception_class: type,
                  message: str, context: Optional[Dict[str, Any]] = None) -> LayerConfError:
    """Wrap an existing exception with a layerconf exception."""
    return new_exception_class(
        message=message,
        context=context,
        cause=original_exception
    )

# Export all exceptions
__all__ = [
    # Root exception
    "LayerConfError",

    # Configuration exceptions
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

    # Utility functions
    "create_error_context",
    "wrap_exception"
]
