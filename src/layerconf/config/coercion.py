"""
Value coercion for stored configuration values.

Stored values are untyped; typed access converts them into a requested
primitive kind using a fixed, exhaustive conversion table. Anything not in
the table is a type mismatch. In particular booleans never convert from or
to numbers.
"""

from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union, get_args, get_origin
import math
import re

from ..core.exceptions import TypeMismatchError


class Kind(Enum):
    """Target kinds supported by typed access and binding."""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DURATION = "duration"
    STRING_LIST = "string_list"
    INT_LIST = "int_list"


class ValueKind(Enum):
    """Variants a stored value can take."""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"
    DURATION = "duration"
    STRING_LIST = "string_list"
    INT_LIST = "int_list"
    LIST = "list"
    EMPTY_MAP = "empty_map"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """Classify a stored value."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, timedelta):
        return ValueKind.DURATION
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return ValueKind.STRING_LIST
        if all(kind_of(item) is ValueKind.INTEGER for item in value):
            return ValueKind.INT_LIST
        return ValueKind.LIST
    if isinstance(value, dict) and not value:
        return ValueKind.EMPTY_MAP
    return ValueKind.OTHER


_PYTHON_KINDS = {
    str: Kind.STRING,
    int: Kind.INT,
    float: Kind.FLOAT,
    bool: Kind.BOOL,
    timedelta: Kind.DURATION,
}

_LIST_KINDS = {
    str: Kind.STRING_LIST,
    int: Kind.INT_LIST,
}


def resolve_kind(target: Any) -> Optional[Kind]:
    """
    Map a Python type annotation (or a Kind) to a Kind.

    ``Optional[X]`` resolves as ``X``. Returns None for unsupported types.
    """
    if isinstance(target, Kind):
        return target
    if target in _PYTHON_KINDS:
        return _PYTHON_KINDS[target]

    origin = get_origin(target)
    args = get_args(target)
    if origin is Union:
        remaining = [arg for arg in args if arg is not type(None)]
        if len(remaining) == 1:
            return resolve_kind(remaining[0])
        return None
    if origin in (list, List) and len(args) == 1:
        return _LIST_KINDS.get(args[0])
    return None


# Textual parsing (mirrors the usual strconv rules)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _parse_int(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid integer syntax: {text!r}")
    return int(text)


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid float syntax: {text!r}")
    return float(text)


def _parse_bool(text: str) -> bool:
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ValueError(f"invalid boolean syntax: {text!r}")


_DURATION_UNITS = {
    "ns": 1e-3,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1e3,
    "s": 1e6,
    "m": 60e6,
    "h": 3600e6,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_BARE_NUMBER = re.compile(r"[+-]?(\d+(?:\.\d*)?|\.\d+)")


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as ``"300ms"``, ``"1h30m"`` or ``"-1.5s"``.

    A bare number (``"500"``) is taken as milliseconds, the same unit used
    for numeric stored values.

    Args:
        text: Duration text

    Returns:
        Parsed duration

    Raises:
        ValueError: If the text is not a duration
    """
    if _BARE_NUMBER.fullmatch(text):
        return timedelta(milliseconds=float(text))

    body = text
    sign = 1
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if not body:
        raise ValueError(f"invalid duration: {text!r}")

    micros = 0.0
    position = 0
    while position < len(body):
        match = _DURATION_PART.match(body, position)
        if not match:
            raise ValueError(f"invalid duration: {text!r}")
        micros += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    return timedelta(microseconds=sign * micros)


def render(value: Any) -> str:
    """Textual rendering of a stored value, used for patterns and STRING."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# Conversions per target kind

def _to_string(value: Any) -> str:
    if isinstance(value, (str, bool, int, float)):
        return render(value)
    raise TypeError


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"cannot truncate {value} to an integer")
        return int(value)
    if isinstance(value, str):
        return _parse_int(value)
    raise TypeError


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return _parse_float(value)
    raise TypeError


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_bool(value)
    raise TypeError


def _to_duration(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, (int, float)):
        return timedelta(milliseconds=value)
    if isinstance(value, str):
        return parse_duration(value)
    raise TypeError


def _to_list(element: Callable[[Any], Any]) -> Callable[[Any], list]:
    def convert(value: Any) -> list:
        if not isinstance(value, (list, tuple)):
            raise TypeError
        return [element(item) for item in value]
    return convert


_CONVERTERS: Dict[Kind, Callable[[Any], Any]] = {
    Kind.STRING: _to_string,
    Kind.INT: _to_int,
    Kind.FLOAT: _to_float,
    Kind.BOOL: _to_bool,
    Kind.DURATION: _to_duration,
    Kind.STRING_LIST: _to_list(_to_string),
    Kind.INT_LIST: _to_list(_to_int),
}


def coerce(value: Any, kind: Union[Kind, type, Any]) -> Any:
    """
    Convert a stored value into the requested kind.

    Args:
        value: Stored value
        kind: Target Kind or a supported Python type

    Returns:
        Converted value

    Raises:
        TypeMismatchError: If the conversion is not in the table or fails
    """
    target = resolve_kind(kind)
    if target is None:
        raise TypeMismatchError(expected=getattr(kind, "__name__", str(kind)), actual=value,
                                detail="unsupported target type")

    try:
        return _CONVERTERS[target](value)
    except TypeError:
        raise TypeMismatchError(expected=target.value, actual=value) from None
    except (ValueError, OverflowError) as e:
        raise TypeMismatchError(expected=target.value, actual=value, detail=str(e)) from e


def parse_default(text: str, kind: Union[Kind, type, Any]) -> Any:
    """
    Parse a textual default literal into the requested kind.

    List kinds split the literal on commas; an empty literal is an empty
    list. Everything else goes through the same table as stored strings.
    """
    target = resolve_kind(kind)
    if target in (Kind.STRING_LIST, Kind.INT_LIST):
        items = [item.strip() for item in text.split(",")] if text.strip() else []
        return coerce(items, target)
    return coerce(text, kind)


def zero_value(kind: Kind) -> Any:
    """Value a field takes when neither the store nor a default supplies one."""
    return {
        Kind.STRING: "",
        Kind.INT: 0,
        Kind.FLOAT: 0.0,
        Kind.BOOL: False,
        Kind.DURATION: timedelta(0),
        Kind.STRING_LIST: [],
        Kind.INT_LIST: [],
    }[kind]
