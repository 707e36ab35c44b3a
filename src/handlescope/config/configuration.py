from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Setting:
    package_name: str
    env_var: str
    group: str
    description: str
    enum: List[str] | None = None
    default: Optional[str] = None


_registry: Dict[str, Setting] = {}


def register_setting(
    package_name: str,
    env_var: str,
    group: str,
    description: str,
    enum: List[str] | None = None,
    default: Optional[str] = None,
) -> Setting:
    """Register a configuration key.

    Parameters
    ----------
    package_name: str
        Name of the package registering the setting.
    env_var: str
        The key, used both in settings.yaml and as environment variable name.
    group: str
        Group the setting belongs to.
    description: str
        Human readable description of the setting.
    enum: List[str] | None
        Accepted values, if the setting is a choice.
    default: str | None
        Value used when neither settings.yaml nor the environment sets it.

    Returns
    -------
    Setting
        The registered setting. Registering the same key again replaces it.
    """
    setting = Setting(
        package_name=package_name,
        env_var=env_var,
        group=group,
        description=description,
        enum=enum,
        default=default,
    )
    _registry[env_var] = setting
    return setting


def get_settings_registry() -> List[Setting]:
    """Return all registered settings, in registration order."""
    return list(_registry.values())


def get_setting_defaults() -> Dict[str, str]:
    """Map each registered key that has a default to that default."""
    return {s.env_var: s.default for s in _registry.values() if s.default is not None}
