from datetime import datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from possync.time_utils import source_now, to_utc_z, utcnow


def _close(a, b, expected_gap=timedelta(0)):
    return abs((a - b) - expected_gap) < timedelta(minutes=1)


def test_source_now_defaults_to_server_local_time():
    now = source_now()
    assert now.tzinfo is None
    assert _close(now, datetime.now())


def test_source_now_in_pinned_zone():
    try:
        ZoneInfo("Etc/GMT+3")
    except ZoneInfoNotFoundError:
        pytest.skip("IANA time zone data not installed")

    # Etc/GMT+3 is UTC-3
    assert _close(source_now("Etc/GMT+3"), utcnow(), -timedelta(hours=3))


def test_to_utc_z():
    assert to_utc_z(None) is None
    assert to_utc_z(datetime(2026, 3, 10, 12, 0, 0, 500)) == "2026-03-10T12:00:00Z"
