"""
Tests for the CLI interface.
"""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from usage_analytics.cli.main import app, EXIT_CODE_OK, EXIT_CODE_ERROR
from usage_analytics.core.environment import fixed_environment

runner = CliRunner()

NOW = datetime(2024, 1, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def payload_path(tmp_path):
    """Write a small usage payload."""
    path = tmp_path / "usage.yaml"
    path.write_text(yaml.safe_dump({
        "events": [
            {"occurred_at_ms": "1705492800000", "request_count": 2, "cost_cents": 150},
            {"occurred_at_ms": "1705496400000", "request_count": 1, "cost_cents": 50},
        ],
        "provider_totals": [{"provider": "openai", "request_count": 10, "spend_cents": 900}],
    }))
    return str(path)


@pytest.fixture
def settings_path(tmp_path):
    """Write settings pointing the export into tmp_path."""
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({
        "advanced": {
            "auto_detect_preferences": False,
            "status_export_path": str(tmp_path / "out" / "status.txt"),
        },
    }))
    return str(path)


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        """Test running without a command shows a hint."""
        result = runner.invoke(app, [])

        assert "Use --help" in result.output

    def test_evaluate_basic(self, payload_path, settings_path):
        """Test evaluate prints tables and the status line."""
        result = runner.invoke(app, ["evaluate", payload_path, "--settings", settings_path])

        assert result.exit_code == EXIT_CODE_OK
        assert "Usage Analytics" in result.output
        assert "providerTotals" in result.output
        assert "Projected monthly spend" in result.output
        assert "Spend: $" in result.output

    def test_evaluate_writes_export(self, tmp_path, payload_path, settings_path):
        """Test --write-export writes the status file."""
        result = runner.invoke(app, ["evaluate", payload_path, "--settings", settings_path, "--write-export"])

        assert result.exit_code == EXIT_CODE_OK
        content = (tmp_path / "out" / "status.txt").read_text(encoding="utf-8")
        assert content.startswith("Spend: $")
        assert content.endswith("\n")

    def test_evaluate_with_workers(self, payload_path, settings_path):
        """Test the thread pool option runs."""
        result = runner.invoke(app, ["evaluate", payload_path, "--settings", settings_path, "--workers", "2"])

        assert result.exit_code == EXIT_CODE_OK

    def test_evaluate_invalid_workers(self, payload_path, settings_path):
        """Test a zero pool size fails cleanly."""
        result = runner.invoke(app, ["evaluate", payload_path, "--settings", settings_path, "--workers", "0"])

        assert result.exit_code == EXIT_CODE_ERROR
        assert "max_workers must be >= 1" in result.output

    def test_evaluate_missing_payload(self, tmp_path):
        """Test a missing payload exits with an error."""
        result = runner.invoke(app, ["evaluate", str(tmp_path / "missing.yaml")])

        assert result.exit_code == EXIT_CODE_ERROR
        assert "Error loading input" in result.output

    def test_evaluate_invalid_settings(self, tmp_path, payload_path):
        """Test invalid settings exit with an error."""
        bad_settings = tmp_path / "bad.yaml"
        bad_settings.write_text("overview:\n  refresh_interval: 0\n")

        result = runner.invoke(app, ["evaluate", payload_path, "--settings", str(bad_settings)])

        assert result.exit_code == EXIT_CODE_ERROR
        assert "refresh_interval must be > 0" in result.output

    def test_evaluate_empty_payload(self, tmp_path):
        """Test an empty payload reports no data."""
        empty = tmp_path / "empty.yaml"
        empty.write_text("")

        result = runner.invoke(app, ["evaluate", str(empty)])

        assert result.exit_code == EXIT_CODE_OK
        assert "No usage data found" in result.output
        assert "Status: Stable" in result.output

    def test_status_shows_profile(self):
        """Test status prints the resolved personalization."""
        env = fixed_environment(NOW, locale_identifier="de_DE", timezone_identifier="Europe/Berlin")
        with patch("usage_analytics.cli.main.system_environment", return_value=env):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == EXIT_CODE_OK
        assert "Currency: EUR" in result.output
        assert "Timezone: Europe/Berlin" in result.output

    def test_status_missing_settings(self, tmp_path):
        """Test status fails on a missing settings file."""
        result = runner.invoke(app, ["status", "--settings", str(tmp_path / "none.yaml")])

        assert result.exit_code == EXIT_CODE_ERROR
