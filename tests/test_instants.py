"""Tests for instant resolution helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from timely.utils.instants import resolve_timezone, to_datetime, to_timestamp, utc_now


def test_utc_now_is_aware():
    assert utc_now().utcoffset() == timedelta(0)


def test_aware_datetime_passes_through():
    value = datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc)
    assert to_datetime(value) is value


def test_naive_datetime_uses_named_zone():
    value = to_datetime(datetime(2025, 1, 1, 9, 30), "America/New_York")
    assert value.utcoffset() == timedelta(hours=-5)


def test_naive_datetime_uses_configured_zone():
    assert to_datetime(datetime(2025, 7, 1)).utcoffset() == timedelta(0)


def test_epoch_seconds():
    assert to_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert to_datetime(1.5).microsecond == 500000


def test_strings_are_parsed():
    assert to_datetime("2025-12-25 10:00") == datetime(2025, 12, 25, 10, tzinfo=timezone.utc)
    assert to_datetime("2025-12-25T10:00:00+01:00").utcoffset() == timedelta(hours=1)


@pytest.mark.parametrize("value", [True, None, [2025, 1, 1], "definitely not a date"])
def test_rejects_non_instants(value):
    with pytest.raises(ValueError):
        to_datetime(value)


def test_unknown_timezone():
    with pytest.raises(ValueError, match="Unknown timezone"):
        resolve_timezone("Mars/Olympus_Mons")


def test_to_timestamp():
    assert to_timestamp("1970-01-02 00:00") == 86400.0
