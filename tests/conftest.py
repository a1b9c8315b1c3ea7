"""Shared fixtures for the timely test suite."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from timely.scheduling.jobs import ScheduleManager
from timely.scheduling.triggers import validate_cron_expression
from timely.settings import refresh_app_settings_cache


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the activity log at a temporary directory and silence console output."""
    monkeypatch.setenv("TIMELY_SYSTEM_ROOT", str(tmp_path / "system"))
    monkeypatch.setenv("TIMELY_CONSOLE_LOGGING", "false")
    monkeypatch.setenv("TIMELY_TIMEZONE", "UTC")
    monkeypatch.delenv("TIMELY_MAX_WORKERS", raising=False)
    monkeypatch.delenv("TIMELY_LOGFIRE", raising=False)
    refresh_app_settings_cache()
    yield tmp_path / "system"
    refresh_app_settings_cache()


class RecordingEngine:
    """In-memory trigger engine that records calls and fires on demand."""

    def __init__(self):
        self.jobs = {}
        self.calls = []
        self._handles = itertools.count(1)

    def register(self, cron_expr, callback, name=None):
        validate_cron_expression(cron_expr)
        handle = f"job-{next(self._handles)}"
        self.jobs[handle] = (cron_expr, callback)
        self.calls.append(("register", handle, cron_expr))
        return handle

    def deregister(self, handle):
        self.calls.append(("deregister", handle))
        self.jobs.pop(handle, None)

    def start(self):
        pass

    def stop(self):
        pass

    def fire(self, handle):
        _, callback = self.jobs[handle]
        return callback()

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def engine():
    return RecordingEngine()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 5, 15, 11, 42, tzinfo=timezone.utc))


@pytest.fixture
def manager(engine, clock):
    return ScheduleManager(engine, clock=clock)
