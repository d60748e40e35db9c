"""
Tests for configuration loading.
"""

from datetime import time

import pytest

from slotbooker.config import AppConfig
from slotbooker.domain.exceptions import ConfigurationError


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig.from_env(environ={})

        assert config.port == 8080
        assert config.timezone == "America/Los_Angeles"
        assert config.calendar_id == "primary"
        assert config.work_start == "09:00"
        assert config.work_end == "17:00"
        assert config.buffer_minutes == 30
        assert config.cors_origins == ["*"]
        assert config.credentials.configured_schemes() == []

    def test_from_env(self):
        config = AppConfig.from_env(
            environ={
                "PORT": "9000",
                "TZ": "Europe/Berlin",
                "GOOGLE_CALENDAR_ID": "team@group.calendar.google.com",
                "WORK_START": "08:30",
                "WORK_END": "18:00",
                "BUFFER_MIN": "0",
                "CORS_ORIGINS": "https://a.example, https://b.example",
                "LOG_LEVEL": "debug",
                "GOOGLE_SERVICE_ACCOUNT_JSON": "{}",
            }
        )

        assert config.port == 9000
        assert config.timezone == "Europe/Berlin"
        assert config.calendar_id == "team@group.calendar.google.com"
        assert config.buffer_minutes == 0
        assert config.cors_origins == ["https://a.example", "https://b.example"]
        assert config.log_level == "DEBUG"
        assert config.credentials.service_account_json == "{}"

    def test_empty_env_values_are_ignored(self):
        config = AppConfig.from_env(environ={"BUFFER_MIN": "", "TZ": ""})

        assert config.buffer_minutes == 30
        assert config.timezone == "America/Los_Angeles"

    def test_work_hours(self):
        work_hours = AppConfig(work_start="08:15", work_end="16:45").get_work_hours()

        assert work_hours.start_time == time(8, 15)
        assert work_hours.end_time == time(16, 45)
        assert work_hours.timezone == "America/Los_Angeles"

    @pytest.mark.parametrize(
        "environ",
        [
            {"TZ": "Mars/Olympus_Mons"},
            {"WORK_START": "9am"},
            {"WORK_START": "17:00", "WORK_END": "09:00"},
            {"WORK_START": "09:00", "WORK_END": "09:00"},
            {"BUFFER_MIN": "-5"},
            {"BUFFER_MIN": "half an hour"},
            {"PORT": "70000"},
        ],
    )
    def test_invalid_values(self, environ):
        with pytest.raises(ConfigurationError):
            AppConfig.from_env(environ=environ)

    def test_yaml_layered_under_env(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "calendar_id: bookings@example.com\n"
            "buffer_minutes: 15\n"
            "work_start: '10:00'\n"
            "credentials:\n"
            "  client_id: yaml-client\n",
            encoding="utf-8",
        )

        config = AppConfig.from_env(
            environ={"BUFFER_MIN": "45", "GOOGLE_CLIENT_SECRET": "env-secret"},
            config_path=config_file,
        )

        assert config.calendar_id == "bookings@example.com"
        assert config.work_start == "10:00"
        assert config.buffer_minutes == 45
        assert config.credentials.client_id == "yaml-client"
        assert config.credentials.client_secret == "env-secret"

    def test_load_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_load_from_yaml_requires_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="mapping"):
            AppConfig.load_from_yaml(config_file)

    def test_load_from_yaml_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("port: [8080\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_file)
