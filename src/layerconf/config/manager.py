"""
Configuration manager with layered sources and hot-reload support.

This module provides the merge engine: an ordered list of sources whose
flattened trees are merged (later sources win) into one flat store that
is published atomically and can be read concurrently.
"""

import argparse
import logging
from pathlib import Path
from threading import Lock
from typing import Dict, Any, Optional, List, Callable, Iterable, Mapping, Sequence, Union

from . import accessor
from .binding import bind
from .flatten import flatten, unflatten
from .signals import ChangeSignal
from .sources import (
    Source, DefaultsSource, DotEnvSource, EnvSource, FlagSource, file_source
)
from .validation import Rule, validate, validate_schema
from .watcher import ChangeWatcher, DEFAULT_DEBOUNCE
from ..core.exceptions import (
    ConfigurationError, LayerConfError, SourceLoadError, create_error_context
)

logger = logging.getLogger(__name__)


def _copy_value(value: Any) -> Any:
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


class ConfigManager:
    """
    Layered configuration manager.

    Sources are registered in precedence order (append-only); ``reload``
    merges them into a fresh flat mapping and swaps it in, so readers see
    either the old or the new snapshot, never a partial merge.
    """

    def __init__(self, sources: Optional[Iterable[Source]] = None):
        """
        Initialize configuration manager.

        Args:
            sources: Initial sources, lowest precedence first
        """
        self._sources: List[Source] = list(sources or [])

        # Configuration storage; replaced wholesale, never mutated
        self._data: Dict[str, Any] = {}
        self._data_lock = Lock()

        # Change handlers
        self._change_handlers: List[Callable[["ConfigManager"], None]] = []
        self._handlers_lock = Lock()

        # Hot reload support
        self._watchers: List[ChangeWatcher] = []
        self._watch_lock = Lock()

    # Source registration

    @property
    def sources(self) -> List[Source]:
        return list(self._sources)

    def with_source(self, source: Source) -> "ConfigManager":
        """Append a custom source (highest precedence so far)."""
        self._sources.append(source)
        return self

    def with_defaults(self, defaults: Mapping[str, Any]) -> "ConfigManager":
        return self.with_source(DefaultsSource(defaults))

    def with_file(self, path: Union[str, Path]) -> "ConfigManager":
        """Append a file source chosen by extension (.yaml/.yml, .json, .toml, .env)."""
        return self.with_source(file_source(path))

    def with_env_prefix(self, prefix: str, environ: Optional[Mapping[str, str]] = None) -> "ConfigManager":
        return self.with_source(EnvSource(prefix, environ))

    def with_dotenv(self, path: Union[str, Path]) -> "ConfigManager":
        return self.with_source(DotEnvSource(path))

    def with_flags(self, parser: argparse.ArgumentParser,
                   argv: Optional[Sequence[str]] = None) -> "ConfigManager":
        return self.with_source(FlagSource(parser, argv))

    # Loading

    def _load_source(self, source: Source) -> Mapping[str, Any]:
        try:
            tree = source.load()
        except LayerConfError:
            raise
        except Exception as e:
            raise SourceLoadError(
                source.name, cause=e,
                context=create_error_context("manager", "reload", {"source": source.name}),
            ) from e

        if not isinstance(tree, Mapping):
            raise SourceLoadError(
                source.name,
                message=f"source {source.name} returned {type(tree).__name__}, expected a mapping",
            )
        return tree

    def reload(self) -> None:
        """
        Load every source in order and publish the merged result.

        On any source failure nothing is published and the error
        propagates.

        Raises:
            SourceLoadError: If a source fails
        """
        merged: Dict[str, Any] = {}
        for source in self._sources:
            flat = flatten(self._load_source(source))
            logger.debug(f"Source {source.name} contributed {len(flat)} keys")
            merged.update(flat)

        with self._data_lock:
            self._data = merged

        logger.info(f"Configuration loaded: {len(merged)} keys from {len(self._sources)} sources")

    # Reads

    def _current(self) -> Dict[str, Any]:
        with self._data_lock:
            return self._data

    def snapshot(self) -> Dict[str, Any]:
        """Independent copy of the current flat configuration."""
        return {key: _copy_value(value) for key, value in self._current().items()}

    def as_dict(self) -> Dict[str, Any]:
        """Current configuration as a nested mapping."""
        return unflatten(self._current())

    def keys(self) -> List[str]:
        return sorted(self._current())

    def has(self, key: str) -> bool:
        return key in self._current()

    def get(self, key: str, kind: Optional[Any] = None) -> Any:
        """
        Get a configuration value coerced to ``kind``.

        Raises:
            KeyNotFoundError: If the key is absent
            TypeMismatchError: If the value cannot be coerced
        """
        return accessor.get(self._current(), key, kind)

    def get_or(self, key: str, kind: Optional[Any], fallback: Any) -> Any:
        """Get a value, returning ``fallback`` on any error."""
        return accessor.get_or(self._current(), key, kind, fallback)

    def must_get(self, key: str, kind: Optional[Any] = None) -> Any:
        """Get a value or raise FatalConfigError."""
        return accessor.must_get(self._current(), key, kind)

    def bind(self, target: Any) -> Any:
        """Bind a dataclass (type or instance) from one consistent snapshot."""
        return bind(self._current(), target)

    def validate(self, rules: Mapping[str, Rule]) -> None:
        """Validate against explicit rules; raises ValidationError."""
        validate(self._current(), rules)

    def validate_schema(self, schema: Any) -> None:
        """Validate against rules declared on a dataclass schema."""
        validate_schema(self._current(), schema)

    # Change handling

    def on_change(self, handler: Callable[["ConfigManager"], None]) -> None:
        """Register a handler called with this manager after a watcher-driven reload."""
        with self._handlers_lock:
            self._change_handlers.append(handler)

    def _notify_change(self) -> None:
        with self._handlers_lock:
            handlers = list(self._change_handlers)

        for handler in handlers:
            try:
                handler(self)
            except Exception as e:
                logger.error(f"Error in config change handler: {e}", exc_info=True)

    def _reload_from_watcher(self) -> None:
        try:
            self.reload()
        except LayerConfError as e:
            logger.error(f"Failed to reload configuration: {e}")
            return
        self._notify_change()

    def watch(self, debounce: float = DEFAULT_DEBOUNCE,
              signal_factory: Optional[Callable[[], ChangeSignal]] = None) -> List[ChangeWatcher]:
        """
        Start hot reload for every file-backed source.

        Args:
            debounce: Quiet period in seconds
            signal_factory: Builds one ChangeSignal per watched file

        Returns:
            The started watchers

        Raises:
            ConfigurationError: If no source is file-backed or already watching
            WatchError: If a watcher cannot start
        """
        paths = []
        for source in self._sources:
            if source.path is not None and source.path not in paths:
                paths.append(source.path)
        if not paths:
            raise ConfigurationError("watch: no file-backed sources registered")

        with self._watch_lock:
            if self._watchers:
                raise ConfigurationError("watch: already watching")

            started: List[ChangeWatcher] = []
            try:
                for path in paths:
                    signal = signal_factory() if signal_factory else None
                    watcher = ChangeWatcher(path, debounce=debounce, signal=signal)
                    watcher.on_change(self._reload_from_watcher)
                    watcher.start()
                    started.append(watcher)
            except Exception:
                for watcher in started:
                    watcher.stop()
                raise

            self._watchers = started

        return list(started)

    def stop_watch(self) -> None:
        """Stop all watchers started by ``watch``."""
        with self._watch_lock:
            watchers, self._watchers = self._watchers, []

        for watcher in watchers:
            watcher.stop()

    def close(self) -> None:
        """Clean up resources."""
        self.stop_watch()
        logger.debug("ConfigManager closed")

    def __enter__(self) -> "ConfigManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
