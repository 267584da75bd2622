"""
Typed access over a flat configuration snapshot.
"""

from typing import Any, Mapping, Optional, TypeVar

from .coercion import coerce
from ..core.exceptions import FatalConfigError, KeyNotFoundError, LayerConfError, TypeMismatchError

T = TypeVar("T")


def get(snapshot: Mapping[str, Any], key: str, kind: Optional[Any] = None) -> Any:
    """
    Look up ``key`` and coerce it to ``kind``.

    Args:
        snapshot: Flat configuration mapping
        key: Flat key
        kind: Kind or Python type (str, int, float, bool, timedelta,
            List[str], List[int]); None returns the stored value

    Raises:
        KeyNotFoundError: If the key is absent
        TypeMismatchError: If the value is not coercible to ``kind``
    """
    if key not in snapshot:
        raise KeyNotFoundError(key)

    value = snapshot[key]
    if kind is None:
        if isinstance(value, (list, dict)):
            return type(value)(value)
        return value

    try:
        return coerce(value, kind)
    except TypeMismatchError as e:
        raise TypeMismatchError(expected=e.expected, actual=value, key=key) from e


def get_or(snapshot: Mapping[str, Any], key: str, kind: Optional[Any], fallback: T) -> T:
    """Like ``get`` but returns ``fallback`` on any lookup or coercion error."""
    try:
        return get(snapshot, key, kind)
    except LayerConfError:
        return fallback


def must_get(snapshot: Mapping[str, Any], key: str, kind: Optional[Any] = None) -> Any:
    """
    Like ``get`` but raises FatalConfigError on failure.

    Meant for required startup configuration, not request paths.
    """
    try:
        return get(snapshot, key, kind)
    except LayerConfError as e:
        raise FatalConfigError(e) from e
