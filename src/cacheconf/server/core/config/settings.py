from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import SettingsError
from .models import SettingsModel

# No logging in this module as it's used to load the logging config

__all__ = ["SETTINGS_FILE_NAME", "find_settings_file", "load_settings"]

SETTINGS_FILE_NAME = "cacheconf.yml"


def find_settings_file(explicit: Path | None = None) -> Path | None:
    """Locate the settings file.

    Priority order:
    1. Explicit path (--config)
    2. CACHECONF_CONFIG environment variable
    3. cacheconf.yml in the current directory or any parent

    Returns:
        The path, or None when no settings file exists
    """
    if explicit is not None:
        return explicit

    env_path = os.environ.get("CACHECONF_CONFIG")
    if env_path:
        return Path(env_path)

    current = Path.cwd()
    for parent in [current] + list(current.parents):
        candidate = parent / SETTINGS_FILE_NAME
        if candidate.exists():
            return candidate
    return None


def load_settings(path: Path | None = None) -> SettingsModel:
    """Load and validate the settings file.

    Relative storage paths are resolved against the directory holding the
    settings file. Without any settings file the defaults apply.

    Raises:
        SettingsError: If the file is missing (when given explicitly), is not
            valid YAML, or does not validate
    """
    config_path = find_settings_file(path)

    if config_path is None:
        return SettingsModel.model_validate({}, context={"root": Path.cwd()})

    if not config_path.exists():
        raise SettingsError(f"Settings file not found at {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Failed to parse settings file {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {config_path} must contain a mapping")

    try:
        return SettingsModel.model_validate(data, context={"root": config_path.parent})
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings file {config_path}: {exc}") from exc
