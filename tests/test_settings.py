"""Tests for environment settings and configuration validation."""

from pathlib import Path

from timely.settings import AppSettings, get_app_settings, refresh_app_settings_cache, validate_settings


class TestAppSettings:

    def test_reads_environment(self, isolated_settings):
        settings = get_app_settings()
        assert settings.system_root == isolated_settings
        assert settings.timezone == "UTC"
        assert settings.max_workers == 4
        assert settings.console_logging is False

    def test_cache_refresh(self, monkeypatch):
        assert get_app_settings() is get_app_settings()
        monkeypatch.setenv("TIMELY_MAX_WORKERS", "9")
        refresh_app_settings_cache()
        assert get_app_settings().max_workers == 9

    def test_system_root_expands_user(self):
        settings = AppSettings(TIMELY_SYSTEM_ROOT="~/timely-data")
        assert settings.system_root == Path.home() / "timely-data"

    def test_blank_timezone_means_local(self):
        assert AppSettings(TIMELY_TIMEZONE="  ").timezone is None


class TestValidateSettings:

    def test_defaults_are_healthy(self, monkeypatch):
        monkeypatch.delenv("LOGFIRE_TOKEN", raising=False)
        status = validate_settings()
        assert status.is_healthy
        assert status.issues == []

    def test_zero_workers_is_an_error(self):
        status = validate_settings(AppSettings(TIMELY_MAX_WORKERS=0))
        assert not status.is_healthy
        assert [issue.name for issue in status.errors] == ["TIMELY_MAX_WORKERS"]

    def test_unknown_timezone_is_an_error(self):
        status = validate_settings(AppSettings(TIMELY_TIMEZONE="Mars/Olympus_Mons"))
        assert [issue.name for issue in status.errors] == ["TIMELY_TIMEZONE"]

    def test_logfire_without_token_is_a_warning(self, monkeypatch):
        monkeypatch.delenv("LOGFIRE_TOKEN", raising=False)
        status = validate_settings(AppSettings(TIMELY_LOGFIRE=True))
        assert status.is_healthy
        assert [issue.name for issue in status.warnings] == ["LOGFIRE_TOKEN"]
