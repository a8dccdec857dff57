"""
Unit tests for settings loading and validation.

Tests strict validation and error handling for application settings.
"""

import os
import tempfile

import pytest
import yaml

from usage_analytics.config.loader import (
    DEFAULT_STATUS_EXPORT_PATH,
    AdvancedSettings,
    AppSettings,
    Appearance,
    OverviewSettings,
    load_app_settings,
    parse_app_settings,
)


class TestSettingsDefaults:
    """Test default values and construction-time validation."""

    def test_defaults(self):
        """Test AppSettings() yields the documented defaults."""
        settings = AppSettings()

        assert settings.appearance == Appearance.SYSTEM
        assert settings.advanced.auto_detect_preferences is True
        assert settings.advanced.notification_threshold_percent == 0.8
        assert settings.advanced.status_export_path == DEFAULT_STATUS_EXPORT_PATH
        assert settings.overview.refresh_interval == 5
        assert settings.provider_settings.openai_organization is None

    def test_threshold_out_of_range(self):
        """Test the threshold must be a fraction."""
        with pytest.raises(ValueError, match="notification_threshold_percent must be between 0 and 1"):
            AdvancedSettings(notification_threshold_percent=1.5)

    def test_refresh_interval_positive(self):
        """Test the refresh interval must be positive."""
        with pytest.raises(ValueError, match="refresh_interval must be > 0"):
            OverviewSettings(refresh_interval=0)


class TestSettingsLoading:
    """Test settings loading from YAML files."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "settings.yaml") -> str:
        """Write settings data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_settings_load_correctly(self):
        """Test that a complete settings file loads correctly."""
        config_path = self._write_config({
            "appearance": "dark",
            "advanced": {
                "auto_detect_preferences": False,
                "notification_threshold_percent": 0.5,
                "status_export_path": "/tmp/status.txt",
            },
            "overview": {"refresh_interval": 30},
            "provider_settings": {"openai_organization": "org-acme"},
        })

        settings = load_app_settings(config_path)

        assert settings.appearance == Appearance.DARK
        assert settings.advanced.auto_detect_preferences is False
        assert settings.advanced.notification_threshold_percent == 0.5
        assert settings.advanced.status_export_path == "/tmp/status.txt"
        assert settings.overview.refresh_interval == 30
        assert settings.provider_settings.openai_organization == "org-acme"

    def test_partial_settings_use_defaults(self):
        """Test missing sections and keys take defaults."""
        config_path = self._write_config({"overview": {"refresh_interval": 10}})

        settings = load_app_settings(config_path)

        assert settings.overview.refresh_interval == 10
        assert settings.advanced == AdvancedSettings()

    def test_integer_threshold_becomes_float(self):
        """Test a whole-number threshold is accepted as a fraction."""
        config_path = self._write_config({"advanced": {"notification_threshold_percent": 1}})

        settings = load_app_settings(config_path)

        assert settings.advanced.notification_threshold_percent == 1.0
        assert isinstance(settings.advanced.notification_threshold_percent, float)

    def test_empty_file_gives_defaults(self):
        """Test an empty settings file is not an error."""
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()

        assert load_app_settings(config_path) == AppSettings()

    def test_missing_file_raises_error(self):
        """Test that missing settings file raises error."""
        with pytest.raises(FileNotFoundError, match="Settings file not found"):
            load_app_settings(os.path.join(self.temp_dir, "nope.yaml"))

    def test_invalid_yaml_raises_error(self):
        """Test that malformed YAML raises error."""
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("advanced: [unclosed\n")

        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_app_settings(config_path)


class TestSettingsValidation:
    """Test strict validation of decoded settings."""

    def test_unknown_top_level_key(self):
        """Test unknown sections are rejected."""
        with pytest.raises(ValueError, match="Unknown settings keys"):
            parse_app_settings({"theme": "dark"})

    def test_unknown_section_key(self):
        """Test unknown keys inside a section are rejected."""
        with pytest.raises(ValueError, match="Unknown keys in advanced"):
            parse_app_settings({"advanced": {"auto_detect": True}})

    def test_invalid_appearance(self):
        """Test appearance must be a known value."""
        with pytest.raises(ValueError, match="'appearance' must be one of"):
            parse_app_settings({"appearance": "sepia"})

    def test_appearance_is_case_insensitive(self):
        """Test appearance values are normalized."""
        assert parse_app_settings({"appearance": "LIGHT"}).appearance == Appearance.LIGHT

    def test_wrong_type(self):
        """Test values of the wrong type are rejected."""
        with pytest.raises(ValueError, match="'refresh_interval' in overview has invalid type str"):
            parse_app_settings({"overview": {"refresh_interval": "5"}})

    def test_bool_is_not_an_integer(self):
        """Test booleans are not accepted for numeric settings."""
        with pytest.raises(ValueError, match="invalid type bool"):
            parse_app_settings({"overview": {"refresh_interval": True}})

    def test_section_must_be_mapping(self):
        """Test sections must be dictionaries."""
        with pytest.raises(ValueError, match="'overview' must be a dictionary"):
            parse_app_settings({"overview": [1, 2]})

    def test_out_of_range_threshold(self):
        """Test dataclass validation applies to loaded values."""
        with pytest.raises(ValueError, match="between 0 and 1"):
            parse_app_settings({"advanced": {"notification_threshold_percent": 80}})

    def test_null_organization_allowed(self):
        """Test the organization may be explicitly null."""
        settings = parse_app_settings({"provider_settings": {"openai_organization": None}})

        assert settings.provider_settings.openai_organization is None
