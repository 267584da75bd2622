"""
File-backed configuration sources.

Supports YAML, JSON, TOML and ``.env`` files. Each source re-reads its
file on every load so that hot reload sees the latest content.
"""

import json
import logging
from abc import abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Callable, Mapping, Union

import toml
import yaml

from .base import Source
from ...core.exceptions import ConfigurationError, SourceLoadError, create_error_context

logger = logging.getLogger(__name__)


class ConfigFormat(Enum):
    """Supported configuration file formats."""
    JSON = "json"
    YAML = "yaml"
    TOML = "toml"
    ENV = "env"


_FORMAT_BY_EXTENSION = {
    '.json': ConfigFormat.JSON,
    '.yaml': ConfigFormat.YAML,
    '.yml': ConfigFormat.YAML,
    '.toml': ConfigFormat.TOML,
    '.env': ConfigFormat.ENV,
}


def detect_format(file_path: Union[str, Path]) -> ConfigFormat:
    """
    Detect configuration format from file extension.

    A bare ``.env`` file name also counts as the ENV format.

    Raises:
        ConfigurationError: If the extension is not supported
    """
    file_path = Path(file_path)
    if file_path.name == '.env':
        return ConfigFormat.ENV

    format_type = _FORMAT_BY_EXTENSION.get(file_path.suffix.lower())
    if format_type is None:
        raise ConfigurationError(f"Unsupported config file format: {file_path.suffix or file_path.name}")
    return format_type


def parse_dotenv(content: str) -> Dict[str, str]:
    """Parse .env file content into a flat mapping of strings."""
    config = {}

    for line in content.splitlines():
        line = line.strip()

        # Skip comments and empty lines
        if not line or line.startswith('#'):
            continue

        if '=' not in line:
            continue

        key, value = line.split('=', 1)
        key = key.strip()
        value = value.strip()

        # Remove quotes
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        config[key] = value

    return config


class FileSource(Source):
    """Base class for sources that parse a single file."""

    format: ConfigFormat

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def name(self) -> str:
        return f"{self.format.value}:{self._path}"

    @property
    def path(self) -> Path:
        return self._path

    @abstractmethod
    def parse(self, content: str) -> Any:
        """Parse file content into a tree."""
        pass

    def load(self) -> Dict[str, Any]:
        context = create_error_context("sources", "load", {"path": str(self._path)})
        try:
            content = self._path.read_text(encoding='utf-8')
        except OSError as e:
            raise SourceLoadError(self.name, cause=e,
                                  message=f"{self.format.value} source: cannot read {self._path}",
                                  context=context) from e

        try:
            data = self.parse(content)
        except Exception as e:
            raise SourceLoadError(self.name, cause=e,
                                  message=f"{self.format.value} source: cannot parse {self._path}",
                                  context=context) from e

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise SourceLoadError(
                self.name,
                message=f"{self.format.value} source: top level of {self._path} is "
                        f"{type(data).__name__}, expected a mapping",
                context=context,
            )

        logger.debug(f"Loaded {len(data)} top-level keys from {self._path}")
        return dict(data)


class YamlFileSource(FileSource):
    """YAML file source (``safe_load``)."""
    format = ConfigFormat.YAML

    def parse(self, content: str) -> Any:
        return yaml.safe_load(content)


class JsonFileSource(FileSource):
    """JSON file source."""
    format = ConfigFormat.JSON

    def parse(self, content: str) -> Any:
        return json.loads(content)


class TomlFileSource(FileSource):
    """TOML file source."""
    format = ConfigFormat.TOML

    def parse(self, content: str) -> Any:
        return toml.loads(content)


class DotEnvSource(FileSource):
    """``.env`` line file source; keys are kept as authored."""
    format = ConfigFormat.ENV

    def parse(self, content: str) -> Any:
        return parse_dotenv(content)


_SOURCE_BY_FORMAT: Dict[ConfigFormat, Callable[[Path], FileSource]] = {
    ConfigFormat.YAML: YamlFileSource,
    ConfigFormat.JSON: JsonFileSource,
    ConfigFormat.TOML: TomlFileSource,
    ConfigFormat.ENV: DotEnvSource,
}


def file_source(path: Union[str, Path]) -> FileSource:
    """Create the file source matching the path's extension."""
    path = Path(path)
    return _SOURCE_BY_FORMAT[detect_format(path)](path)
