"""Tests for the throttle policy."""

import logging
from datetime import datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pricewatch.services.throttle_policy import can_trigger, normalize_frequency, ThrottlePolicy

NOW = datetime(2026, 10, 17, 12, 0, 0)


class TestDailyFrequency:
    def test_23_hours_ago_is_throttled(self):
        assert can_trigger("daily", NOW - timedelta(hours=23), NOW) is False

    def test_25_hours_ago_is_allowed(self):
        assert can_trigger("daily", NOW - timedelta(hours=25), NOW) is True

    def test_never_triggered_is_allowed(self):
        assert can_trigger("daily", None, NOW) is True

    def test_exact_window_is_allowed(self):
        assert can_trigger("daily", NOW - timedelta(seconds=86400), NOW) is True


@pytest.mark.parametrize(
    "frequency,window",
    [("minute", 60), ("hourly", 3600), ("daily", 86400)],
)
def test_window_boundaries(frequency, window):
    assert can_trigger(frequency, NOW - timedelta(seconds=window - 1), NOW) is False
    assert can_trigger(frequency, NOW - timedelta(seconds=window), NOW) is True


class TestOnceFrequency:
    def test_never_triggered_is_allowed(self):
        assert can_trigger("once", None, NOW) is True

    @given(st.integers(min_value=0, max_value=10 * 365 * 86400))
    def test_any_previous_trigger_blocks_forever(self, seconds_ago):
        assert can_trigger("once", NOW - timedelta(seconds=seconds_ago), NOW) is False


class TestUnknownFrequency:
    def test_falls_back_to_daily(self):
        assert can_trigger("weekly", NOW - timedelta(hours=23), NOW) is False
        assert can_trigger("weekly", NOW - timedelta(hours=25), NOW) is True
        assert can_trigger(None, None, NOW) is True

    def test_logs_data_quality_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert normalize_frequency("fortnightly") == "daily"

        assert "Data quality" in caplog.text
        assert "fortnightly" in caplog.text

    def test_known_frequencies_pass_through(self):
        for frequency in ("once", "minute", "hourly", "daily"):
            assert normalize_frequency(frequency) == frequency


def test_policy_wrapper_delegates():
    assert ThrottlePolicy().can_trigger("minute", NOW - timedelta(seconds=30), NOW) is False
