"""Utility functions for reading and writing the settings file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

from handlescope.config.configuration import register_setting

SETTINGS_FILE = "settings.yaml"
MISSING_MESSAGE = "Missing required configuration value: {}"
NOT_GIVEN = object()

OUT_OF_ORDER_POLICIES = ["warn", "ignore"]

register_setting(
    package_name="handlescope",
    env_var="LOG_LEVEL",
    group="Logging",
    description="Log level for handlescope loggers (DEBUG, INFO, WARNING, ERROR)",
    default="INFO",
)
register_setting(
    package_name="handlescope",
    env_var="DISPOSE_SCOPE_OUT_OF_ORDER",
    group="Dispose scopes",
    description=(
        "What to do when a dispose scope is ended while it is not the innermost "
        "scope of its thread. 'warn' logs a warning, 'ignore' stays silent. "
        "The scope is removed from the stack either way."
    ),
    enum=OUT_OF_ORDER_POLICIES,
    default="warn",
)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_system_file_path(filename: str) -> Path:
    """Return the path to the configuration file for the current OS."""
    import platform

    os_name = platform.system()
    if os_name in {"Linux", "Darwin"}:
        return Path.home() / ".config" / "handlescope" / filename
    elif os_name == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata is not None:
            return Path(appdata) / "handlescope" / filename
        return Path("data") / filename
    return Path("data") / filename


# ---------------------------------------------------------------------------
# Settings helpers
# ---------------------------------------------------------------------------


def load_settings() -> Dict[str, Any]:
    """Load settings from the YAML settings file."""
    settings_file = get_system_file_path(SETTINGS_FILE)

    settings: Dict[str, Any] = {}
    if settings_file.exists():
        with open(settings_file, "r") as f:
            settings = yaml.safe_load(f) or {}

    return settings


def save_settings(settings: Dict[str, Any]) -> None:
    """Save settings to the YAML settings file."""
    settings_file = get_system_file_path(SETTINGS_FILE)
    os.makedirs(os.path.dirname(settings_file), exist_ok=True)

    with open(settings_file, "w") as f:
        yaml.dump(settings, f)


def get_value(
    key: str,
    settings: Dict[str, Any],
    default_env: Dict[str, Any],
    default: Any = NOT_GIVEN,
) -> Any:
    """Retrieve a configuration value from settings or environment."""
    value = settings.get(key)
    if value is None or str(value) == "":
        value = os.environ.get(key)

    if value is None:
        value = default_env.get(key, default)

    if value is not NOT_GIVEN:
        return value
    raise KeyError(MISSING_MESSAGE.format(key))
