"""
Schema descriptors for binding and validation.

Schemas are plain dataclasses. Each configurable field carries its lookup
key, an optional textual default and an optional rule expression in the
dataclass field metadata:

    @dataclass
    class ServerConfig:
        host: str = config_field("server.host", default="localhost")
        port: int = config_field("server.port", default="8080", validate="min=1,max=65535")
        timeout: timedelta = config_field("server.timeout", default="5s")

    @dataclass
    class AppConfig:
        server: ServerConfig = field(default_factory=ServerConfig)

``describe`` turns a dataclass into a tuple of FieldSpec once per type, so
binding and validation are loops over descriptors.
"""

from dataclasses import dataclass, field, fields, is_dataclass, MISSING
from datetime import timedelta
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from ..coercion import Kind, resolve_kind
from ...core.exceptions import SchemaError

# Metadata keys on dataclass fields
KEY_METADATA = "config"
DEFAULT_METADATA = "default"
VALIDATE_METADATA = "validate"


def config_field(key: str, *, default: Optional[str] = None, validate: Optional[str] = None,
                 field_default: Any = MISSING, **field_kwargs: Any) -> Any:
    """
    Declare a configurable dataclass field.

    Args:
        key: Flat configuration key to read
        default: Textual default literal used when the key is absent
        validate: Rule expression, e.g. ``"required,min=1"``
        field_default: Plain dataclass default for direct construction
        **field_kwargs: Passed through to ``dataclasses.field``

    Returns:
        A dataclass field
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[KEY_METADATA] = key
    if default is not None:
        metadata[DEFAULT_METADATA] = str(default)
    if validate is not None:
        metadata[VALIDATE_METADATA] = validate

    if field_default is not MISSING:
        field_kwargs["default"] = field_default
    return field(metadata=metadata, **field_kwargs)


@dataclass(frozen=True)
class FieldSpec:
    """Binding/validation descriptor of one dataclass field."""
    name: str
    key: Optional[str] = None
    kind: Optional[Kind] = None
    default: Optional[str] = None
    validate: Optional[str] = None
    nested: Optional[type] = None

    @property
    def is_leaf(self) -> bool:
        return self.nested is None


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) is Union:
        remaining = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(remaining) == 1:
            return remaining[0]
    return annotation


@lru_cache(maxsize=None)
def describe(schema: type) -> Tuple[FieldSpec, ...]:
    """
    Build the field descriptors of a dataclass type.

    Nested dataclass fields are described with ``nested`` set; timedelta is
    a leaf. Fields without a key that are not dataclasses are skipped.

    Raises:
        SchemaError: If the target is not a dataclass type or a keyed
            field has an unsupported annotation
    """
    if not (isinstance(schema, type) and is_dataclass(schema)):
        raise SchemaError(f"schema target must be a dataclass type, got {schema!r}")

    try:
        hints = get_type_hints(schema)
    except Exception as e:
        raise SchemaError(f"cannot resolve annotations of {schema.__name__}", cause=e) from e

    specs = []
    for dc_field in fields(schema):
        annotation = _unwrap_optional(hints.get(dc_field.name, dc_field.type))
        metadata = dc_field.metadata
        key = metadata.get(KEY_METADATA)

        if key is None:
            if isinstance(annotation, type) and is_dataclass(annotation) and annotation is not timedelta:
                specs.append(FieldSpec(name=dc_field.name, nested=annotation))
            continue

        kind = resolve_kind(annotation)
        if kind is None:
            raise SchemaError(
                f"field {schema.__name__}.{dc_field.name} has unsupported type {annotation!r}",
                context={"key": key},
            )

        specs.append(FieldSpec(
            name=dc_field.name,
            key=key,
            kind=kind,
            default=metadata.get(DEFAULT_METADATA),
            validate=metadata.get(VALIDATE_METADATA),
        ))

    return tuple(specs)


def schema_keys(schema: type) -> Dict[str, FieldSpec]:
    """All keyed leaf descriptors of a schema, recursing into nested ones."""
    out: Dict[str, FieldSpec] = {}
    for spec in describe(schema):
        if spec.nested is not None:
            out.update(schema_keys(spec.nested))
        else:
            out[spec.key] = spec
    return out


__all__ = [
    "KEY_METADATA",
    "DEFAULT_METADATA",
    "VALIDATE_METADATA",
    "config_field",
    "FieldSpec",
    "describe",
    "schema_keys",
]
