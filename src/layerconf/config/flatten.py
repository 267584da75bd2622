"""
Conversion between nested configuration trees and flat dot-joined keys.
"""

from typing import Dict, Any, Mapping

KEY_SEPARATOR = "."


def flatten(tree: Mapping[Any, Any]) -> Dict[str, Any]:
    """
    Flatten a nested mapping into ``parent.child.leaf -> value`` entries.

    Empty nested mappings are kept as a single entry holding ``{}``.
    Lists are copied unchanged and never walked into. Non-string keys
    (YAML allows integers) are rendered with ``str``.

    Args:
        tree: Nested key/value mapping

    Returns:
        Flat mapping keyed by dot-joined paths
    """
    out: Dict[str, Any] = {}
    _flatten_into("", tree, out)
    return out


def _flatten_into(prefix: str, tree: Mapping[Any, Any], out: Dict[str, Any]) -> None:
    for raw_key, value in tree.items():
        key = str(raw_key)
        if prefix:
            key = prefix + KEY_SEPARATOR + key

        if isinstance(value, Mapping):
            if len(value) == 0:
                out[key] = {}
            else:
                _flatten_into(key, value, out)
        elif isinstance(value, list):
            out[key] = list(value)
        else:
            out[key] = value


def unflatten(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Rebuild a nested mapping from dot-joined keys.

    When an intermediate segment already holds a leaf, the leaf is replaced
    by a fresh mapping; the last processed entry wins.

    Args:
        flat: Flat mapping keyed by dot-joined paths

    Returns:
        Nested mapping
    """
    out: Dict[str, Any] = {}

    for key, value in flat.items():
        parts = key.split(KEY_SEPARATOR)
        current = out

        for part in parts[:-1]:
            child = current.get(part)
            if not isinstance(child, dict):
                child = {}
                current[part] = child
            current = child

        if isinstance(value, dict):
            value = dict(value)
        elif isinstance(value, list):
            value = list(value)
        current[parts[-1]] = value

    return out
