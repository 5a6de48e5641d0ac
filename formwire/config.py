import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so env vars are available for YAML interpolation
load_dotenv(Path.cwd() / ".env")

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

CONFIG_ENV_VAR = "FORMWIRE_CONFIG"

_config_path_override: Path | None = None


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def set_config_path(path: Path | str | None) -> None:
    """Override the app.yaml location (used by the CLI --config option)."""
    global _config_path_override
    _config_path_override = Path(path) if path is not None else None


def get_config_path() -> Path:
    """Resolve the config file: explicit override, then $FORMWIRE_CONFIG, then ./app.yaml."""
    if _config_path_override is not None:
        return _config_path_override
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse the config file with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return interpolate_env_vars(config or {})


class FormsConfig(BaseModel):
    """Forms to register at startup.

    ``classes`` holds "module:ClassName" specs; ``modules`` holds module
    paths whose Form subclasses are all registered.
    """

    classes: list[str] = []
    modules: list[str] = []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FORMWIRE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = False

    # Loaded from app.yaml
    forms: FormsConfig = FormsConfig()


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and app.yaml."""
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    updates = {}

    if "debug" in app_config:
        updates["debug"] = bool(app_config["debug"])

    if "forms" in app_config:
        updates["forms"] = FormsConfig(**(app_config["forms"] or {}))

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings


def clear_settings_cache() -> None:
    get_settings.cache_clear()
