"""
Unit tests for the configuration manager.
"""

import argparse
import threading
import time
import pytest
from dataclasses import dataclass
from datetime import timedelta

import yaml

from layerconf.config.manager import ConfigManager
from layerconf.config.schemas import config_field
from layerconf.config.signals import ChangeKind
from layerconf.config.sources import DefaultsSource, EnvSource, Source, register_flags
from layerconf.config.validation import Rule
from layerconf.core.exceptions import (
    ConfigurationError, FatalConfigError, KeyNotFoundError, SourceLoadError,
    TypeMismatchError, ValidationError, WatchError
)

from tests.mocks.signals import ManualSignal


class StaticSource(Source):
    """Source returning a fixed tree, optionally failing."""

    def __init__(self, tree=None, error=None):
        self.tree = tree or {}
        self.error = error
        self.loads = 0

    def load(self):
        self.loads += 1
        if self.error is not None:
            raise self.error
        return self.tree


@dataclass
class ServerConfig:
    host: str = config_field("server.host", default="0.0.0.0")
    port: int = config_field("server.port", validate="required,min=1,max=65535")
    timeout: timedelta = config_field("server.timeout", default="30s")


class TestConfigManager:
    """Test ConfigManager class."""

    def test_initialization(self):
        """Test a fresh manager is empty."""
        manager = ConfigManager()

        assert manager.snapshot() == {}
        assert manager.sources == []

    def test_reload_with_no_sources(self):
        """Test reloading with no sources publishes an empty store."""
        manager = ConfigManager()
        manager.reload()

        assert manager.keys() == []

    def test_layer_precedence(self, temp_config_file):
        """Test later sources override earlier ones key by key."""
        manager = (
            ConfigManager()
            .with_defaults({"server": {"host": "defaulthost", "port": 1}, "region": "eu"})
            .with_file(temp_config_file)
            .with_env_prefix("APP", {"APP_SERVER_HOST": "envhost"})
        )
        manager.reload()

        assert manager.get("server.host", str) == "envhost"
        assert manager.get("server.port", int) == 8080
        assert manager.get("region", str) == "eu"

    def test_store_is_flat(self, loaded_manager):
        """Test the published store uses dotted keys."""
        snapshot = loaded_manager.snapshot()

        assert snapshot["server.tls.enabled"] is False
        assert snapshot["database.replicas"] == ["db1", "db2"]
        assert snapshot["features"] == {}
        assert "server" not in snapshot

    def test_failed_reload_keeps_previous_store(self):
        """Test a failing source publishes nothing."""
        good = StaticSource({"a": 1})
        bad = StaticSource(error=SourceLoadError("bad"))
        manager = ConfigManager([good])
        manager.reload()
        manager.with_source(bad)

        with pytest.raises(SourceLoadError):
            manager.reload()

        assert manager.snapshot() == {"a": 1}

    def test_foreign_source_errors_are_wrapped(self):
        """Test non-library errors from a source become SourceLoadError."""
        manager = ConfigManager([StaticSource(error=KeyError("boom"))])

        with pytest.raises(SourceLoadError) as exc_info:
            manager.reload()

        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.source == "StaticSource"

    def test_library_errors_propagate_unchanged(self):
        """Test library errors from a source are not rewrapped."""
        error = ConfigurationError("bad layer")
        manager = ConfigManager([StaticSource(error=error)])

        with pytest.raises(ConfigurationError) as exc_info:
            manager.reload()

        assert exc_info.value is error

    def test_non_mapping_tree_is_rejected(self):
        """Test a source returning a non-mapping fails the reload."""
        manager = ConfigManager([StaticSource(tree=["a"])])

        with pytest.raises(SourceLoadError):
            manager.reload()

    def test_snapshot_is_independent(self, loaded_manager):
        """Test mutating a snapshot does not affect the store."""
        snapshot = loaded_manager.snapshot()
        snapshot["server.port"] = 1
        snapshot["database.replicas"].append("db3")

        assert loaded_manager.get("server.port") == 8080
        assert loaded_manager.get("database.replicas") == ["db1", "db2"]

    def test_as_dict(self, loaded_manager, sample_config):
        """Test the nested view matches the source tree."""
        assert loaded_manager.as_dict() == sample_config

    def test_has_and_keys(self, loaded_manager):
        """Test key queries."""
        assert loaded_manager.has("server.host")
        assert not loaded_manager.has("server")
        assert loaded_manager.keys() == sorted(loaded_manager.snapshot())

    def test_reload_picks_up_source_changes(self):
        """Test reload re-reads sources."""
        source = StaticSource({"a": 1})
        manager = ConfigManager([source])
        manager.reload()
        source.tree = {"a": 2}
        manager.reload()

        assert manager.get("a", int) == 2
        assert source.loads == 2

    def test_with_flags(self):
        """Test flags are the highest layer when registered last."""
        parser = register_flags(argparse.ArgumentParser(), "server.port")
        manager = (
            ConfigManager()
            .with_defaults({"server": {"port": 8080}})
            .with_flags(parser, ["--server.port", "9090"])
        )
        manager.reload()

        assert manager.get("server.port", int) == 9090


class TestManagerAccess:
    """Test typed access, binding and validation through the manager."""

    def test_get_variants(self, loaded_manager):
        """Test get, get_or and must_get."""
        assert loaded_manager.get("server.timeout", timedelta) == timedelta(seconds=5)
        assert loaded_manager.get_or("server.missing", str, "x") == "x"
        assert loaded_manager.must_get("database.pool_size", int) == 10

        with pytest.raises(KeyNotFoundError):
            loaded_manager.get("server.missing", str)
        with pytest.raises(TypeMismatchError):
            loaded_manager.get("debug", int)
        with pytest.raises(FatalConfigError):
            loaded_manager.must_get("server.missing")

    def test_bind(self, loaded_manager):
        """Test binding from the current store."""
        server = loaded_manager.bind(ServerConfig)

        assert server.host == "localhost"
        assert server.port == 8080
        assert server.timeout == timedelta(seconds=5)

    def test_bind_defaults_on_empty_store(self):
        """Test defaults apply when nothing is loaded."""
        server = ConfigManager().bind(ServerConfig)

        assert server.host == "0.0.0.0"
        assert server.port == 0

    def test_validate(self, loaded_manager):
        """Test explicit rules."""
        loaded_manager.validate({"server.port": Rule(required=True, minimum=1)})

        with pytest.raises(ValidationError) as exc_info:
            loaded_manager.validate({"server.port": Rule(maximum=80), "api.key": Rule(required=True)})

        assert exc_info.value.fields == ["server.port", "api.key"]

    def test_validate_schema(self, loaded_manager):
        """Test schema rules."""
        loaded_manager.validate_schema(ServerConfig)

        with pytest.raises(ValidationError):
            ConfigManager().validate_schema(ServerConfig)


class TestManagerConcurrency:
    """Test concurrent reads during reloads."""

    def test_readers_see_complete_snapshots(self):
        """Test readers never observe a partially merged store."""
        source = StaticSource({"a": 0, "b": 0})
        manager = ConfigManager([source])
        manager.reload()
        errors = []
        done = threading.Event()

        def reader():
            while not done.is_set():
                snapshot = manager.snapshot()
                if snapshot["a"] != snapshot["b"]:
                    errors.append(snapshot)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        for i in range(1, 200):
            source.tree = {"a": i, "b": i}
            manager.reload()
        done.set()
        for thread in threads:
            thread.join(5)

        assert errors == []


class TestManagerWatch:
    """Test hot reload wiring."""

    def test_watch_reloads_and_notifies(self, temp_config_file):
        """Test a file change reloads the store and calls handlers."""
        signal = ManualSignal()
        manager = ConfigManager().with_file(temp_config_file)
        manager.reload()
        changed = threading.Event()
        seen = []

        def handler(current):
            seen.append(current.get("server.port", int))
            changed.set()

        manager.on_change(handler)
        manager.watch(debounce=0.05, signal_factory=lambda: signal)
        try:
            assert signal.subscribed.wait(2)
            temp_config_file.write_text(yaml.safe_dump({"server": {"port": 9090}}))
            signal.emit(ChangeKind.WRITE)

            assert changed.wait(5)
            assert seen == [9090]
            assert manager.get("server.port", int) == 9090
        finally:
            manager.close()

        assert signal.unsubscribe_calls >= 1

    def test_failed_reload_keeps_store_and_skips_handlers(self, temp_config_file):
        """Test a broken file after a change leaves the old store."""
        signal = ManualSignal()
        manager = ConfigManager().with_file(temp_config_file)
        manager.reload()
        calls = []
        manager.on_change(lambda current: calls.append(current))

        with manager:
            manager.watch(debounce=0.05, signal_factory=lambda: signal)
            temp_config_file.write_text("server: [unclosed")
            signal.emit(ChangeKind.WRITE)
            time.sleep(0.5)

        assert calls == []
        assert manager.get("server.port", int) == 8080

    def test_handler_errors_are_isolated(self, temp_config_file):
        """Test one failing handler does not block the next."""
        signal = ManualSignal()
        manager = ConfigManager().with_file(temp_config_file)
        manager.reload()
        called = threading.Event()

        def broken(current):
            raise RuntimeError("handler failed")

        manager.on_change(broken)
        manager.on_change(lambda current: called.set())

        with manager:
            manager.watch(debounce=0.05, signal_factory=lambda: signal)
            signal.emit(ChangeKind.WRITE)
            assert called.wait(5)

    def test_watch_requires_file_sources(self):
        """Test watching without file sources fails."""
        manager = ConfigManager([DefaultsSource({"a": 1}), EnvSource("APP", {})])

        with pytest.raises(ConfigurationError):
            manager.watch()

    def test_watch_twice(self, temp_config_file):
        """Test a second watch call fails."""
        manager = ConfigManager().with_file(temp_config_file)

        with manager:
            manager.watch(signal_factory=ManualSignal)
            with pytest.raises(ConfigurationError):
                manager.watch(signal_factory=ManualSignal)

    def test_watch_subscribe_failure(self, temp_config_file):
        """Test subscription failures propagate and nothing keeps running."""
        manager = ConfigManager().with_file(temp_config_file)

        with pytest.raises(WatchError):
            manager.watch(signal_factory=lambda: ManualSignal(fail_subscribe=True))

        manager.watch(signal_factory=ManualSignal)
        manager.stop_watch()

    def test_watch_rolls_back_on_unexpected_error(self, tmp_path, temp_config_file):
        """Test watchers already started are stopped when a later one fails."""
        other = tmp_path / "override.json"
        other.write_text("{}")
        manager = ConfigManager().with_file(temp_config_file).with_file(other)
        first = ManualSignal()
        signals = iter([first])

        def factory():
            signal = next(signals, None)
            if signal is None:
                raise RuntimeError("no more signals")
            return signal

        with pytest.raises(RuntimeError):
            manager.watch(signal_factory=factory)

        assert first.unsubscribe_calls == 1
        manager.watch(signal_factory=ManualSignal)
        manager.stop_watch()

    def test_one_watcher_per_file(self, tmp_path, temp_config_file):
        """Test each distinct file gets its own watcher."""
        other = tmp_path / "override.json"
        other.write_text("{}")
        manager = (
            ConfigManager()
            .with_file(temp_config_file)
            .with_file(other)
            .with_file(temp_config_file)
        )

        with manager:
            watchers = manager.watch(signal_factory=ManualSignal)

            assert [w.path for w in watchers] == [temp_config_file, other]
            assert all(w.running for w in watchers)

        assert not any(w.running for w in watchers)
