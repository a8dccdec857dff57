"""
Configuration management and loading.

Handles the application settings consumed by the analytics engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_STATUS_EXPORT_PATH = "~/.usage-analytics/status.txt"


class Appearance(Enum):
    """Display appearance preference."""
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class AdvancedSettings:
    """Detection, notification and export preferences."""
    auto_detect_preferences: bool = True
    notification_threshold_percent: float = 0.8
    status_export_path: str = DEFAULT_STATUS_EXPORT_PATH

    def __post_init__(self):
        """Validate the notification threshold is a fraction."""
        if not 0 <= self.notification_threshold_percent <= 1:
            raise ValueError("notification_threshold_percent must be between 0 and 1")


@dataclass(frozen=True)
class OverviewSettings:
    refresh_interval: int = 5

    def __post_init__(self):
        if self.refresh_interval <= 0:
            raise ValueError("refresh_interval must be > 0")


@dataclass(frozen=True)
class ProviderSettings:
    openai_organization: Optional[str] = None


@dataclass(frozen=True)
class AppSettings:
    """Complete application settings, read-only to the engine."""
    appearance: Appearance = Appearance.SYSTEM
    advanced: AdvancedSettings = field(default_factory=AdvancedSettings)
    overview: OverviewSettings = field(default_factory=OverviewSettings)
    provider_settings: ProviderSettings = field(default_factory=ProviderSettings)


_ADVANCED_KEYS = {
    'auto_detect_preferences': bool,
    'notification_threshold_percent': (int, float),
    'status_export_path': str,
}
_OVERVIEW_KEYS = {'refresh_interval': int}
_PROVIDER_KEYS = {'openai_organization': (str, type(None))}


def load_app_settings(path: str) -> AppSettings:
    """Load and validate application settings from a YAML file.

    Strict validation ensures a typo in a key or a wrong type is reported
    instead of silently falling back to a default.

    Args:
        path: Path to YAML settings file

    Returns:
        Validated AppSettings object

    Raises:
        FileNotFoundError: If settings file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If settings are invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in settings file {path}: {e}")

    if not raw_config:
        return AppSettings()

    return parse_app_settings(raw_config)


def parse_app_settings(raw_config: Any) -> AppSettings:
    """Build AppSettings from an already-decoded mapping.

    Raises:
        ValueError: If settings are invalid
    """
    if not isinstance(raw_config, dict):
        raise ValueError("Settings must be a dictionary")

    allowed_top_keys = {'appearance', 'advanced', 'overview', 'provider_settings'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown settings keys: {unknown_keys}")

    appearance = Appearance.SYSTEM
    if 'appearance' in raw_config:
        appearance_str = raw_config['appearance']
        if not isinstance(appearance_str, str):
            raise ValueError("'appearance' must be a string")
        try:
            appearance = Appearance(appearance_str.lower())
        except ValueError:
            valid = [a.value for a in Appearance]
            raise ValueError(f"'appearance' must be one of: {valid}")

    advanced_data = _parse_section(raw_config, 'advanced', _ADVANCED_KEYS)
    if 'notification_threshold_percent' in advanced_data:
        advanced_data['notification_threshold_percent'] = float(
            advanced_data['notification_threshold_percent']
        )

    advanced = AdvancedSettings(**advanced_data)
    overview = OverviewSettings(**_parse_section(raw_config, 'overview', _OVERVIEW_KEYS))
    provider_settings = ProviderSettings(
        **_parse_section(raw_config, 'provider_settings', _PROVIDER_KEYS)
    )

    return AppSettings(
        appearance=appearance,
        advanced=advanced,
        overview=overview,
        provider_settings=provider_settings,
    )


def _parse_section(raw_config: Dict, name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    """Validate one settings section against its key/type schema.

    Args:
        raw_config: Top-level settings mapping
        name: Section name, also used in error messages
        schema: Allowed keys mapped to accepted Python types

    Returns:
        Keyword arguments for the section dataclass (missing keys omitted)

    Raises:
        ValueError: If the section is invalid
    """
    data = raw_config.get(name)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - set(schema.keys())
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")

    for key, value in data.items():
        expected = schema[key]
        # bool is a subclass of int; only accept it where bool is expected
        if isinstance(value, bool) and expected is not bool:
            raise ValueError(f"'{key}' in {name} has invalid type bool")
        if not isinstance(value, expected):
            raise ValueError(f"'{key}' in {name} has invalid type {type(value).__name__}")

    return dict(data)
