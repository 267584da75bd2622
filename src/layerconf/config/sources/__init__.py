"""
Configuration sources.

A source supplies one layer of configuration as a nested tree. Sources are
merged in registration order, later ones overriding earlier ones.
"""

from .base import Source
from .defaults import DefaultsSource
from .files import (
    ConfigFormat, FileSource, YamlFileSource, JsonFileSource,
    TomlFileSource, DotEnvSource, detect_format, file_source, parse_dotenv
)
from .process import EnvSource, FlagSource, register_flags

__all__ = [
    "Source",
    "DefaultsSource",
    "ConfigFormat",
    "FileSource",
    "YamlFileSource",
    "JsonFileSource",
    "TomlFileSource",
    "DotEnvSource",
    "detect_format",
    "file_source",
    "parse_dotenv",
    "EnvSource",
    "FlagSource",
    "register_flags",
]
