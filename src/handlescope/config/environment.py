"""
Environment Configuration Management Module

Centralized configuration for handlescope through the Environment class. Values
are looked up in this order:

- Settings file (settings.yaml)
- Environment variables (including ones loaded from .env files)
- Default values

The Environment class only exposes class methods, so callers never need to hold
a configuration object. Tests drive it by monkeypatching os.environ or by
assigning ``Environment.settings`` directly.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from handlescope.config.configuration import get_setting_defaults
from handlescope.config.logging_config import get_logger
from handlescope.config.settings import (
    OUT_OF_ORDER_POLICIES,
    SETTINGS_FILE,
    get_system_file_path,
    get_value,
    load_settings,
)

DEFAULT_ENV = {
    "ENV": "development",
    **get_setting_defaults(),
}


def load_dotenv_files(base_dir: Optional[Path] = None):
    """Load environment variables from .env files based on current environment."""
    from dotenv import load_dotenv

    project_root = base_dir if base_dir is not None else Path.cwd()
    env_name = os.environ.get("ENV", "development")

    # Later files override earlier ones only for keys that are still unset
    env_files = [
        project_root / ".env",
        project_root / f".env.{env_name}",
        project_root / f".env.{env_name}.local",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)


class Environment(object):
    """
    Manages configuration values and provides defaults and type conversions.

    Settings are loaded lazily on first access and cached in ``settings``.
    """

    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def load_settings(cls):
        load_dotenv_files()
        cls.settings = load_settings()

    @classmethod
    def get_settings(cls) -> Dict[str, Any]:
        if cls.settings is None:
            cls.load_settings()
        assert cls.settings is not None
        return cls.settings

    @classmethod
    def get(cls, key: str, default: Any = None):
        return get_value(key, cls.get_settings(), DEFAULT_ENV, default)

    @classmethod
    def has_settings(cls) -> bool:
        """True when the settings file exists."""
        return get_system_file_path(SETTINGS_FILE).exists()

    @classmethod
    def get_env(cls):
        """
        The environment is either "development", "test" or "production".
        """
        return cls.get("ENV")

    @classmethod
    def get_log_level(cls) -> str:
        """
        The log level, from HANDLESCOPE_LOG_LEVEL, then LOG_LEVEL.
        """
        override = os.environ.get("HANDLESCOPE_LOG_LEVEL")
        if override:
            return override.upper()
        return str(cls.get("LOG_LEVEL", "INFO")).upper()

    @classmethod
    def get_out_of_order_policy(cls) -> str:
        """
        How to report a dispose scope that is ended while not innermost.

        Unknown values fall back to "warn".
        """
        policy = str(cls.get("DISPOSE_SCOPE_OUT_OF_ORDER", "warn")).strip().lower()
        if policy not in OUT_OF_ORDER_POLICIES:
            get_logger(__name__).warning(
                "Unknown DISPOSE_SCOPE_OUT_OF_ORDER value %r, using 'warn'",
                policy,
            )
            return "warn"
        return policy
