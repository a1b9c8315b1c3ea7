"""Tests for the unified logger's activity log."""

import json

from timely.logger import UnifiedLogger


def read_entries(system_root):
    lines = (system_root / "activity.log").read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


def test_activity_writes_json_line(isolated_settings):
    logger = UnifiedLogger(tag="test-activity")
    logger.activity("Starting schedule", schedule_id="report", metadata={"cron": "0 9 * * *"})

    entries = read_entries(isolated_settings)
    assert len(entries) == 1
    entry = entries[0]
    assert entry["message"] == "Starting schedule"
    assert entry["schedule"] == "report"
    assert entry["tag"] == "test-activity"
    assert entry["level"] == "info"
    assert entry["metadata"] == {"cron": "0 9 * * *"}
    assert "timestamp" in entry


def test_activity_defaults_to_system_context(isolated_settings):
    UnifiedLogger(tag="test-activity").activity("Runtime started")
    assert read_entries(isolated_settings)[0]["schedule"] == "system"


def test_activity_uses_logger_schedule_context(isolated_settings):
    logger = UnifiedLogger(tag="test-activity", schedule_context="nightly")
    logger.activity("Waiting", level="warning", attempt=2)

    entry = read_entries(isolated_settings)[0]
    assert entry["schedule"] == "nightly"
    assert entry["level"] == "warning"
    assert entry["context"] == {"attempt": 2}
    assert "metadata" not in entry


def test_manager_records_lifecycle(isolated_settings, manager):
    from timely.scheduling.builder import daily
    from timely.scheduling.registry import scheduled_item

    manager.start_schedule(scheduled_item(daily(), lambda: None, id="report"))
    manager.end_schedule("report")

    messages = [(e["schedule"], e["message"]) for e in read_entries(isolated_settings)]
    assert messages == [("report", "Starting schedule"), ("report", "Removing schedule")]


def test_trace_preserves_return_value():
    logger = UnifiedLogger(tag="test-trace")

    @logger.trace()
    def add(a, b):
        return a + b

    assert add(2, 3) == 5


def test_span_wraps_block():
    logger = UnifiedLogger(tag="test-span")
    with logger.span("refresh", batch_size=2):
        result = "done"
    assert result == "done"
