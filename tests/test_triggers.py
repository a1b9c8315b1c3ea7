"""Tests for cron validation and the APScheduler trigger engine."""

import pytest

from timely.scheduling.exceptions import InvalidCronExpression, RegistrationError
from timely.scheduling.triggers import (
    APSchedulerEngine,
    TriggerEngine,
    day_of_week_to_names,
    validate_cron_expression,
)

from .conftest import RecordingEngine


@pytest.fixture
def scheduler_engine():
    engine = APSchedulerEngine(max_workers=1, timezone="UTC")
    yield engine
    engine.stop(wait=False)


class TestValidateCronExpression:

    @pytest.mark.parametrize(
        "expr",
        ["* * * * *", "0 0 * * *", "*/2 * */2 * *", "0 * * 4-9 1,5", "59 23 31 12 6", "1,2-4,*/5 * * * *"],
    )
    def test_valid(self, expr):
        assert validate_cron_expression(expr) == expr.split(" ")

    @pytest.mark.parametrize(
        "expr",
        [
            "0 0 * *",
            "0 0 * * * *",
            "0  0 * * *",
            "60 * * * *",
            "0 24 * * *",
            "0 0 0 * *",
            "0 0 * 13 *",
            "0 0 * * 7",
            "*/0 * * * *",
            "a * * * *",
            "0 0 * * mon",
            "",
        ],
    )
    def test_invalid(self, expr):
        with pytest.raises(InvalidCronExpression) as exc:
            validate_cron_expression(expr)
        assert exc.value.expression == expr

    def test_non_string(self):
        with pytest.raises(InvalidCronExpression):
            validate_cron_expression(None)

    def test_is_a_registration_error(self):
        with pytest.raises(RegistrationError):
            validate_cron_expression("bogus")


class TestDayOfWeekToNames:

    @pytest.mark.parametrize(
        "part, expected",
        [
            ("*", "*"),
            ("0", "sun"),
            ("1,3", "mon,wed"),
            ("1-3", "mon,tue,wed"),
            ("*/3", "sun,wed,sat"),
            ("0,6", "sun,sat"),
        ],
    )
    def test_translation(self, part, expected):
        assert day_of_week_to_names(part) == expected

    @pytest.mark.parametrize("part", ["5-1", "5-1,3", "3,6-2"])
    def test_inverted_range(self, part):
        with pytest.raises(InvalidCronExpression) as exc:
            day_of_week_to_names(part)
        assert exc.value.expression == part


class TestAPSchedulerEngine:

    def test_satisfies_protocol(self, scheduler_engine):
        assert isinstance(scheduler_engine, TriggerEngine)
        assert isinstance(RecordingEngine(), TriggerEngine)

    def test_register_requires_started_engine(self, scheduler_engine):
        with pytest.raises(RegistrationError, match="must be started"):
            scheduler_engine.register("* * * * *", lambda: None)

    def test_register_and_deregister(self, scheduler_engine):
        scheduler_engine.start()
        handle = scheduler_engine.register("20 9 * * 1,3", lambda: None, name="schedule: report")

        job = scheduler_engine.get_job(handle)
        assert job is not None
        assert job.name == "schedule: report"
        assert "day_of_week='mon,wed'" in str(job.trigger)
        assert "minute='20'" in str(job.trigger)
        assert scheduler_engine.job_count() == 1

        scheduler_engine.deregister(handle)
        assert scheduler_engine.get_job(handle) is None
        assert scheduler_engine.job_count() == 0

    def test_deregister_unknown_handle_is_noop(self, scheduler_engine):
        scheduler_engine.start()
        scheduler_engine.deregister("missing")

    def test_handles_are_unique(self, scheduler_engine):
        scheduler_engine.start()
        first = scheduler_engine.register("0 0 * * *", lambda: None)
        second = scheduler_engine.register("0 0 * * *", lambda: None)
        assert first != second
        assert scheduler_engine.job_count() == 2

    def test_invalid_cron_rejected(self, scheduler_engine):
        scheduler_engine.start()
        with pytest.raises(InvalidCronExpression):
            scheduler_engine.register("0 0 * 9-4 *", lambda: None)
        assert scheduler_engine.job_count() == 0

    def test_inverted_weekday_range_in_list_rejected(self, scheduler_engine):
        scheduler_engine.start()
        with pytest.raises(InvalidCronExpression):
            scheduler_engine.register("0 0 * * 5-1,3", lambda: None)
        assert scheduler_engine.job_count() == 0

    def test_create_trigger_uses_engine_timezone(self, scheduler_engine):
        trigger = scheduler_engine.create_trigger("*/2 * */2 * *")
        assert str(trigger.timezone) == "UTC"

    def test_paused_start_and_resume(self, scheduler_engine):
        scheduler_engine.start(paused=True)
        assert scheduler_engine.running
        scheduler_engine.register("0 * * 4-9 1", lambda: None)
        scheduler_engine.resume()
        assert scheduler_engine.job_count() == 1

    def test_stop(self, scheduler_engine):
        scheduler_engine.start()
        scheduler_engine.stop()
        assert not scheduler_engine.running
        scheduler_engine.stop()

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            APSchedulerEngine(timezone="Mars/Olympus_Mons")
