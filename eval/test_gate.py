"""Tests for the 24h send cadence."""
from datetime import datetime, timedelta, timezone

from cloudstats.telemetry.gate import should_send

NOW = datetime(2017, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_never_sent_is_eligible():
    assert should_send(None, now=NOW) is True


def test_sent_25_hours_ago_is_eligible():
    assert should_send(NOW - timedelta(hours=25), now=NOW) is True


def test_sent_1_hour_ago_is_not_eligible():
    assert should_send(NOW - timedelta(hours=1), now=NOW) is False


def test_exactly_24_hours_is_not_eligible():
    assert should_send(NOW - timedelta(hours=24), now=NOW) is False


def test_naive_timestamps_are_treated_as_utc():
    last = datetime(2017, 5, 30, 12, 0)
    assert should_send(last, now=datetime(2017, 6, 1, 12, 0)) is True


def test_custom_expiration():
    assert should_send(NOW - timedelta(minutes=10), now=NOW,
                       expiration=timedelta(minutes=5)) is True
