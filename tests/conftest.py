"""Shared pytest fixtures."""

import sys

import pytest
import yaml

import formwire.config as config_mod
from formwire.processor import SubmissionProcessor
from formwire.registry import FormRegistry


@pytest.fixture
def registry():
    """A fresh, empty registry."""
    return FormRegistry()


@pytest.fixture
def processor(registry):
    return SubmissionProcessor(registry)


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config path override and settings cache around each test."""
    config_mod._config_path_override = None
    config_mod.clear_settings_cache()
    yield
    config_mod._config_path_override = None
    config_mod.clear_settings_cache()


@pytest.fixture(autouse=True)
def clean_sys_path():
    """Ensure sys.path is restored after each test."""
    original_path = sys.path.copy()
    yield
    sys.path = original_path
