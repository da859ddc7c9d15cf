"""Unit tests for configuration loading and logging setup."""

import logging
import os

import colorlog
import pytest

from popup_scheduler import _init_logging
from popup_scheduler.config_loader import Config, load_config
from popup_scheduler.core.config_manager import ConfigManager, parse_env_file
from popup_scheduler.core.scheduler_logging import (
    SCHEDULER_MODULES,
    configure_logging,
    get_logging_status,
)
from popup_scheduler.exceptions import ConfigError

pytestmark = pytest.mark.unit


class TestConfig:
    """Tests for Config.from_dict and load_config."""

    def test_defaults(self):
        config = Config()

        assert config.default_timezone == "UTC"
        assert config.preview_iteration_cap == 1000
        assert config.store_path is None

    def test_from_dict_coerces_values(self):
        config = Config.from_dict(
            {
                "default_timezone": "Europe/Berlin",
                "default_preview_occurrences": "5",
                "upcoming_holidays_days": "14",
                "log_level": "debug",
                "store_path": "schedules.json",
            }
        )

        assert config.default_timezone == "Europe/Berlin"
        assert config.default_preview_occurrences == 5
        assert config.upcoming_holidays_days == 14
        assert config.log_level == "DEBUG"
        assert config.store_path == "schedules.json"

    @pytest.mark.parametrize(("raw", "expected"), [(5000, 1000), (0, 1), (-3, 1), ("250", 250), ("lots", 1000)])
    def test_preview_iteration_cap_is_bounded(self, raw, expected):
        assert Config.from_dict({"preview_iteration_cap": raw}).preview_iteration_cap == expected

    def test_from_dict_none(self):
        assert Config.from_dict(None) == Config()

    def test_load_config_missing_file_uses_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "missing.yaml")) == Config()

    def test_load_config_reads_yaml(self, tmp_path):
        path = tmp_path / "popup_scheduler.yaml"
        path.write_text("default_timezone: America/Chicago\ncountry_code: CA\n", encoding="utf-8")

        config = load_config(str(path))

        assert config.default_timezone == "America/Chicago"
        assert config.country_code == "CA"

    def test_load_config_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(str(path)) == Config()

    def test_load_config_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_load_config_rejects_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("a: [b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(str(path))


class TestConfigManager:
    """Tests for .env parsing and environment overrides."""

    def test_parse_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n\nPOPUP_SCHEDULER_DEFAULT_TIMEZONE='Asia/Tokyo'\nNO_EQUALS\nKEY = \"value\"\n",
            encoding="utf-8",
        )

        assert parse_env_file(env_file) == {
            "POPUP_SCHEDULER_DEFAULT_TIMEZONE": "Asia/Tokyo",
            "KEY": "value",
        }

    def test_parse_missing_env_file(self, tmp_path):
        assert parse_env_file(tmp_path / ".env") == {}

    def test_load_env_file_does_not_override_environment(self, tmp_path, monkeypatch):
        monkeypatch.setattr(os, "environ", {"POPUP_SCHEDULER_COUNTRY_CODE": "GB"})
        env_file = tmp_path / ".env"
        env_file.write_text(
            "POPUP_SCHEDULER_COUNTRY_CODE=US\nPOPUP_SCHEDULER_DEFAULT_TIMEZONE=Asia/Tokyo\n",
            encoding="utf-8",
        )

        loaded = ConfigManager(env_file).load_env_file()

        assert loaded == ["POPUP_SCHEDULER_DEFAULT_TIMEZONE"]
        assert os.environ["POPUP_SCHEDULER_COUNTRY_CODE"] == "GB"

    def test_env_overrides_apply(self, monkeypatch):
        monkeypatch.setenv("POPUP_SCHEDULER_DEFAULT_TIMEZONE", "Europe/Paris")
        monkeypatch.setenv("POPUP_SCHEDULER_STORE_PATH", "/tmp/schedules.json")
        monkeypatch.setenv("POPUP_SCHEDULER_LOG_LEVEL", "warning")
        monkeypatch.setenv("POPUP_SCHEDULER_PREVIEW_ITERATION_CAP", "5000")

        config = ConfigManager().apply_env_overrides(Config(country_code="CA"))

        assert config.default_timezone == "Europe/Paris"
        assert config.store_path == "/tmp/schedules.json"
        assert config.log_level == "WARNING"
        assert config.preview_iteration_cap == 1000
        assert config.country_code == "CA"

    def test_invalid_cap_override_is_ignored(self, monkeypatch):
        monkeypatch.setenv("POPUP_SCHEDULER_PREVIEW_ITERATION_CAP", "many")

        assert ConfigManager().apply_env_overrides(Config()).preview_iteration_cap == 1000

    def test_load_full_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(os, "environ", {})
        env_file = tmp_path / ".env"
        env_file.write_text("POPUP_SCHEDULER_COUNTRY_CODE=DE\n", encoding="utf-8")

        config = ConfigManager(env_file).load_full_config()

        assert config.country_code == "DE"


class TestLogging:
    """Tests for logging setup helpers."""

    def test_configure_logging_debug(self):
        configure_logging(force_debug=True)

        status = get_logging_status()
        assert status["root"] == "DEBUG"
        assert all(status[name] == "DEBUG" for name in SCHEDULER_MODULES)

    def test_configure_logging_uses_root_level_name(self):
        configure_logging(root_level_name="WARNING")

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("popup_scheduler").level == logging.INFO

    def test_env_debug_flag(self, monkeypatch):
        monkeypatch.setenv("POPUP_SCHEDULER_DEBUG", "yes")

        configure_logging()

        assert logging.getLogger("popup_scheduler.domain.recurrence").level == logging.DEBUG

    def test_env_log_level_wins_for_root(self, monkeypatch):
        monkeypatch.setenv("POPUP_SCHEDULER_LOG_LEVEL", "ERROR")

        configure_logging(debug_mode=True)

        assert logging.getLogger().level == logging.ERROR

    def test_init_logging_installs_colored_handler(self, monkeypatch):
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])

        _init_logging("warning")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, colorlog.ColoredFormatter)
        assert root.level == logging.WARNING

    def test_init_logging_debug_env(self, monkeypatch):
        monkeypatch.setenv("POPUP_SCHEDULER_DEBUG", "1")

        _init_logging("INFO")

        assert logging.getLogger().level == logging.DEBUG
