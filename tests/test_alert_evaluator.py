"""Tests for threshold evaluation."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pricewatch.services.alert_evaluator import should_trigger, ThresholdEvaluator

prices = st.floats(min_value=0.01, max_value=1e6, allow_nan=False, allow_infinity=False)


class TestUpperAlerts:
    def test_equal_price_is_inclusive(self):
        assert should_trigger("upper", 140, 140) is True

    def test_price_just_below_threshold(self):
        assert should_trigger("upper", 140, 139.99) is False

    def test_price_above_threshold(self):
        assert should_trigger("upper", 140, 145) is True


class TestLowerAlerts:
    def test_equal_price_is_inclusive(self):
        assert should_trigger("lower", 100, 100) is True

    def test_price_just_above_threshold(self):
        assert should_trigger("lower", 100, 100.01) is False

    def test_price_below_threshold(self):
        assert should_trigger("lower", 100, 95.5) is True


def test_unknown_alert_type_never_triggers():
    assert should_trigger("sideways", 100, 100) is False


@given(threshold=prices, price=prices)
def test_upper_and_lower_cover_every_price(threshold, price):
    """Every price satisfies at least one direction; both only at the threshold."""
    upper = should_trigger("upper", threshold, price)
    lower = should_trigger("lower", threshold, price)

    assert upper or lower
    assert (upper and lower) == (price == threshold)


@pytest.mark.parametrize("alert_type,price,expected", [("upper", 200, True), ("lower", 200, False)])
def test_evaluator_wrapper_delegates(alert_type, price, expected):
    assert ThresholdEvaluator().should_trigger(alert_type, 150, price) is expected
