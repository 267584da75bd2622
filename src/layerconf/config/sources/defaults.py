"""
Static defaults source.
"""

from typing import Dict, Any, Mapping
import copy

from .base import Source


class DefaultsSource(Source):
    """Returns a fixed mapping, usually registered first (lowest precedence)."""

    def __init__(self, values: Mapping[str, Any]):
        self._values = copy.deepcopy(dict(values))

    @property
    def name(self) -> str:
        return "defaults"

    def load(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)
