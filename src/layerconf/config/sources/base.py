"""
Source contract for configuration layers.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from pathlib import Path


class Source(ABC):
    """
    One layer of configuration.

    ``load`` returns a (possibly nested) key/value tree or raises. The
    engine never interprets the failure beyond propagating it.
    """

    @property
    def name(self) -> str:
        """Human-readable source name used in logs and errors."""
        return self.__class__.__name__

    @property
    def path(self) -> Optional[Path]:
        """Backing file, if the source reads one."""
        return None

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Load and return this layer's configuration tree."""
        pass

    def __repr__(self) -> str:
        return f"<{self.name}>"
