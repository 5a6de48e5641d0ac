"""Tests for settings loading and registry construction from config."""

import os
from unittest.mock import patch

import pytest

from formwire.app_factory import build_registry, create_app
from formwire.config import (
    FormsConfig,
    Settings,
    get_config_path,
    get_settings,
    interpolate_env_vars,
    load_app_config,
    set_config_path,
)
from formwire.exceptions import InvalidReference


class TestConfigPath:
    def test_override_is_returned(self, tmp_path):
        custom = tmp_path / "custom.yaml"
        set_config_path(custom)
        assert get_config_path() == custom

    def test_env_var_used_without_override(self, tmp_path):
        with patch.dict(os.environ, {"FORMWIRE_CONFIG": str(tmp_path / "env.yaml")}):
            assert get_config_path() == tmp_path / "env.yaml"

    def test_defaults_to_cwd_app_yaml(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("FORMWIRE_CONFIG", None)
            assert get_config_path().name == "app.yaml"


class TestInterpolation:
    def test_replaces_nested_values(self):
        with patch.dict(os.environ, {"FORMS_MODULE": "myapp.forms"}):
            result = interpolate_env_vars({"forms": {"modules": ["$FORMS_MODULE"]}})
        assert result == {"forms": {"modules": ["myapp.forms"]}}

    def test_missing_variable_raises(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("FORMWIRE_MISSING_VAR", None)
            with pytest.raises(ValueError, match="FORMWIRE_MISSING_VAR"):
                interpolate_env_vars("$FORMWIRE_MISSING_VAR")

    def test_non_strings_untouched(self):
        assert interpolate_env_vars(5) == 5


class TestGetSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        set_config_path(tmp_path / "nope.yaml")
        settings = get_settings()
        assert settings.forms == FormsConfig()

    def test_missing_file_raises_from_loader(self, tmp_path):
        set_config_path(tmp_path / "nope.yaml")
        with pytest.raises(FileNotFoundError):
            load_app_config()

    def test_empty_file_gives_empty_config(self, tmp_path):
        config_path = tmp_path / "app.yaml"
        config_path.write_text("")
        set_config_path(config_path)
        assert load_app_config() == {}

    def test_yaml_values_merged(self, temp_app_yaml):
        config_path = temp_app_yaml(
            {
                "debug": True,
                "forms": {
                    "classes": ["formwire.examples.contact:ContactForm"],
                    "modules": ["formwire.examples.contact"],
                },
            }
        )
        set_config_path(config_path)

        settings = get_settings()

        assert settings.debug is True
        assert settings.forms.classes == ["formwire.examples.contact:ContactForm"]
        assert settings.forms.modules == ["formwire.examples.contact"]

    def test_settings_cached(self, tmp_path):
        set_config_path(tmp_path / "nope.yaml")
        assert get_settings() is get_settings()


class TestBuildRegistry:
    def test_registers_classes_and_modules(self):
        settings = Settings(
            forms=FormsConfig(
                classes=["formwire.examples.contact:ContactForm"],
                modules=["formwire.examples.contact"],
            )
        )
        registry = build_registry(settings)
        assert registry.names() == ["contact"]

    def test_empty_settings_give_empty_registry(self):
        assert len(build_registry(Settings())) == 0

    def test_invalid_class_spec_raises(self):
        settings = Settings(forms=FormsConfig(classes=["formwire.examples.contact:Nope"]))
        with pytest.raises(InvalidReference):
            build_registry(settings)

    def test_create_app_builds_registry_from_settings(self):
        settings = Settings(forms=FormsConfig(modules=["formwire.examples.contact"]))
        app = create_app(settings=settings)
        assert app.state.form_registry.has("contact")
