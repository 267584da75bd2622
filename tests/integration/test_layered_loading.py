"""
Integration tests for loading, binding and validating layered sources.
"""

import argparse
import json
import pytest
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

import toml
import yaml

from layerconf.config import ConfigManager, config_field, register_flags
from layerconf.core.exceptions import BindError, ValidationError

pytestmark = pytest.mark.integration


@dataclass
class DatabaseConfig:
    url: str = config_field("database.url", validate="required,pattern=^postgres://")
    pool_size: int = config_field("database.pool_size", default="5", validate="min=1,max=100")
    replicas: List[str] = config_field("database.replicas", default="")


@dataclass
class ServerConfig:
    host: str = config_field("server.host", default="0.0.0.0")
    port: int = config_field("server.port", default="8080", validate="min=1,max=65535")
    timeout: timedelta = config_field("server.timeout", default="30s")


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=lambda: ServerConfig("", 0, timedelta(0)))
    database: DatabaseConfig = field(default_factory=lambda: DatabaseConfig("", 0, []))
    debug: bool = config_field("debug", default="false", field_default=False)


class TestLayeredLoading:
    """Test a full stack of sources."""

    def test_all_layers(self, tmp_path):
        """Test defaults < yaml < json < toml < dotenv < env < flags."""
        yaml_file = tmp_path / "base.yaml"
        yaml_file.write_text(yaml.safe_dump({
            "server": {"host": "yamlhost", "port": 1000, "timeout": "10s"},
            "database": {"url": "postgres://yaml/app", "replicas": ["r1", "r2"]},
        }))
        json_file = tmp_path / "site.json"
        json_file.write_text(json.dumps({"server": {"port": 2000.0}}))
        toml_file = tmp_path / "local.toml"
        toml_file.write_text(toml.dumps({"database": {"pool_size": 20}}))
        env_file = tmp_path / ".env"
        env_file.write_text("debug=true\n")

        parser = register_flags(argparse.ArgumentParser(), "server.timeout")

        manager = (
            ConfigManager()
            .with_defaults({"server": {"host": "defaulthost"}})
            .with_file(yaml_file)
            .with_file(json_file)
            .with_file(toml_file)
            .with_dotenv(env_file)
            .with_env_prefix("APP", {"APP_SERVER_HOST": "envhost"})
            .with_flags(parser, ["--server.timeout", "1m"])
        )
        manager.reload()

        config = manager.bind(AppConfig)

        assert config.server.host == "envhost"
        assert config.server.port == 2000
        assert config.server.timeout == timedelta(minutes=1)
        assert config.database.pool_size == 20
        assert config.database.replicas == ["r1", "r2"]
        assert config.debug is True
        manager.validate_schema(AppConfig)

    def test_invalid_merged_configuration(self, tmp_path):
        """Test validation reports every violation from the merged store."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({
            "server": {"port": 70000},
            "database": {"url": "mysql://db", "pool_size": 0},
        }))

        manager = ConfigManager().with_file(config_file)
        manager.reload()

        with pytest.raises(ValidationError) as exc_info:
            manager.validate_schema(AppConfig)

        assert set(exc_info.value.fields) == {"server.port", "database.url", "database.pool_size"}

    def test_bind_failure_names_field(self, tmp_path):
        """Test a bad value fails the bind with the field path."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"server": {"timeout": "soon"}}))

        manager = ConfigManager().with_file(config_file)
        manager.reload()

        with pytest.raises(BindError) as exc_info:
            manager.bind(AppConfig)

        assert exc_info.value.field == "server.timeout"
