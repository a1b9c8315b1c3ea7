"""Tests for runtime configuration, bootstrap and shutdown."""

import logging
from datetime import timedelta

import pytest

from timely.runtime.bootstrap import RuntimeStartupError, bootstrap_runtime
from timely.runtime.config import RuntimeConfig, RuntimeConfigError
from timely.scheduling.builder import daily, each_minute, end_time
from timely.scheduling.registry import scheduled_item
from timely.settings import refresh_app_settings_cache
from timely.utils.instants import utc_now


def noop():
    pass


class TestRuntimeConfig:

    def test_for_testing(self, tmp_path):
        config = RuntimeConfig.for_testing(tmp_path)
        assert config.system_root == tmp_path / "system"
        assert config.system_root.is_dir()
        assert config.max_workers == 1
        assert config.timezone == "UTC"
        assert config.features == {"testing": True}

    def test_for_production_reads_settings(self, isolated_settings, monkeypatch):
        monkeypatch.setenv("TIMELY_MAX_WORKERS", "3")
        refresh_app_settings_cache()

        config = RuntimeConfig.for_production()

        assert config.system_root == isolated_settings
        assert config.max_workers == 3
        assert config.timezone == "UTC"

    def test_string_root_is_converted(self, tmp_path):
        config = RuntimeConfig(system_root=str(tmp_path / "root"))
        assert config.system_root == tmp_path / "root"

    def test_rejects_zero_workers(self, tmp_path):
        with pytest.raises(RuntimeConfigError, match="max_workers"):
            RuntimeConfig(system_root=tmp_path, max_workers=0)

    def test_rejects_unknown_timezone(self, tmp_path):
        with pytest.raises(RuntimeConfigError, match="Unknown timezone"):
            RuntimeConfig(system_root=tmp_path, timezone="Mars/Olympus_Mons")

    def test_rejects_bad_log_level(self, tmp_path):
        with pytest.raises(RuntimeConfigError, match="log_level"):
            RuntimeConfig(system_root=tmp_path, log_level="LOUD")


class TestBootstrap:

    def test_bootstrap_registers_initial_items(self, tmp_path):
        items = [
            scheduled_item(daily(), noop, id="nightly"),
            scheduled_item(each_minute(end_time(utc_now() - timedelta(hours=1))), noop, id="old"),
        ]
        context = bootstrap_runtime(RuntimeConfig.for_testing(tmp_path), items)
        try:
            assert context.engine.running
            assert context.manager.registered_ids() == ["nightly"]
            assert context.engine.job_count() == 1

            summary = context.get_runtime_summary()
            assert summary["engine"] == "running (1 jobs)"
            assert summary["schedules"] == 1
            assert summary["timezone"] == "UTC"
            assert summary["last_refresh"] is None
        finally:
            context.shutdown(wait=False)

    def test_refresh_through_context(self, tmp_path):
        context = bootstrap_runtime(RuntimeConfig.for_testing(tmp_path))
        try:
            report = context.refresh([scheduled_item(daily(), noop, id="a", insert_time=1)])
            assert [o.schedule_id for o in report.started] == ["a"]
            assert context.last_refresh is not None
            assert context.get_runtime_summary()["schedules"] == 1
        finally:
            context.shutdown(wait=False)

    def test_shutdown_removes_schedules_and_stops_engine(self, tmp_path):
        context = bootstrap_runtime(RuntimeConfig.for_testing(tmp_path), [scheduled_item(daily(), noop, id="a")])
        context.shutdown()

        assert len(context.manager) == 0
        assert not context.engine.running
        assert context.get_runtime_summary()["engine"] == "stopped"

    def test_log_level_applies_to_apscheduler(self, tmp_path):
        apscheduler_logger = logging.getLogger("apscheduler")
        previous = apscheduler_logger.level
        context = bootstrap_runtime(RuntimeConfig(system_root=tmp_path, timezone="UTC", log_level="warning"))
        try:
            assert apscheduler_logger.level == logging.WARNING
        finally:
            context.shutdown(wait=False)
            apscheduler_logger.setLevel(previous)

    def test_invalid_settings_block_bootstrap(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TIMELY_MAX_WORKERS", "0")
        refresh_app_settings_cache()

        with pytest.raises(RuntimeConfigError, match="TIMELY_MAX_WORKERS"):
            bootstrap_runtime(RuntimeConfig.for_testing(tmp_path))

    def test_startup_failure_is_wrapped(self, tmp_path, monkeypatch):
        def broken_manager(engine):
            raise RuntimeError("manager unavailable")

        monkeypatch.setattr("timely.runtime.bootstrap.ScheduleManager", broken_manager)

        with pytest.raises(RuntimeStartupError, match="manager unavailable"):
            bootstrap_runtime(RuntimeConfig.for_testing(tmp_path))
