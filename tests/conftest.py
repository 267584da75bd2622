"""
Global pytest configuration and fixtures.

This module provides shared fixtures for the layerconf test suite.
"""

import pytest
import sys
import logging
from pathlib import Path

import yaml

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from layerconf.config.manager import ConfigManager
from layerconf.config.sources import DefaultsSource

from tests.mocks.signals import ManualSignal


# Configure logging for tests
logging.getLogger().setLevel(logging.CRITICAL)


@pytest.fixture
def sample_config():
    """Sample nested configuration for testing."""
    return {
        "server": {
            "host": "localhost",
            "port": 8080,
            "timeout": "5s",
            "tls": {
                "enabled": False
            }
        },
        "database": {
            "url": "postgres://localhost/app",
            "pool_size": 10,
            "replicas": ["db1", "db2"]
        },
        "features": {},
        "debug": True
    }


@pytest.fixture
def temp_config_file(tmp_path, sample_config):
    """Create temporary YAML configuration file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump(sample_config))
    return config_file


@pytest.fixture
def loaded_manager(sample_config):
    """ConfigManager loaded from the sample configuration."""
    manager = ConfigManager([DefaultsSource(sample_config)])
    manager.reload()
    return manager


@pytest.fixture
def manual_signal():
    """In-memory change signal driven by the test."""
    return ManualSignal()
