"""
Struct binding: populate dataclasses from a configuration snapshot.

Binding fails fast. The first coercion or default-parse failure raises a
BindError naming the field; data validation is a separate pass.
"""

import logging
from dataclasses import is_dataclass
from typing import Any, Dict, Mapping, TypeVar, Union

from .coercion import coerce, parse_default, zero_value
from .schemas import FieldSpec, describe
from ..core.exceptions import BindError, SchemaError, TypeMismatchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ABSENT = object()


def _resolve(spec: FieldSpec, snapshot: Mapping[str, Any], path: str) -> Any:
    """Value for one leaf field, or _ABSENT when nothing supplies one."""
    if spec.key in snapshot:
        try:
            return coerce(snapshot[spec.key], spec.kind)
        except TypeMismatchError as e:
            raise BindError(path, spec.key, e) from e

    if spec.default is not None:
        try:
            return parse_default(spec.default, spec.kind)
        except TypeMismatchError as e:
            raise BindError(path, spec.key, e, from_default=True) from e

    return _ABSENT


def _build(schema: type, snapshot: Mapping[str, Any], prefix: str) -> Any:
    kwargs: Dict[str, Any] = {}
    for spec in describe(schema):
        path = f"{prefix}{spec.name}"
        if spec.nested is not None:
            kwargs[spec.name] = _build(spec.nested, snapshot, path + ".")
            continue

        value = _resolve(spec, snapshot, path)
        kwargs[spec.name] = zero_value(spec.kind) if value is _ABSENT else value

    try:
        return schema(**kwargs)
    except TypeError as e:
        raise SchemaError(f"cannot construct {schema.__name__}: {e}", cause=e) from e


def _populate(target: Any, snapshot: Mapping[str, Any], prefix: str) -> None:
    for spec in describe(type(target)):
        path = f"{prefix}{spec.name}"
        if spec.nested is not None:
            current = getattr(target, spec.name, None)
            if isinstance(current, spec.nested):
                _populate(current, snapshot, path + ".")
            else:
                setattr(target, spec.name, _build(spec.nested, snapshot, path + "."))
            continue

        value = _resolve(spec, snapshot, path)
        if value is not _ABSENT:
            setattr(target, spec.name, value)


def bind(snapshot: Mapping[str, Any], target: Union[T, type]) -> T:
    """
    Bind configuration values onto a dataclass.

    For every keyed field: a stored value is coerced into the field's kind;
    otherwise a declared default literal is parsed; otherwise the field
    keeps its zero value. Nested dataclass fields recurse.

    Args:
        snapshot: Flat configuration mapping
        target: Dataclass instance (populated in place) or dataclass type
            (a new instance is constructed)

    Returns:
        The populated instance

    Raises:
        BindError: On the first value or default that cannot be coerced
        SchemaError: If the target is not a dataclass
    """
    if isinstance(target, type):
        instance = _build(target, snapshot, "")
    elif is_dataclass(target):
        _populate(target, snapshot, "")
        instance = target
    else:
        raise SchemaError(f"bind: target must be a dataclass or dataclass instance, got {type(target).__name__}")

    logger.debug(f"Bound {type(instance).__name__} from {len(snapshot)} keys")
    return instance

