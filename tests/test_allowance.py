"""
Unit tests for the pure allowance calculation
"""
from datetime import datetime

import pytest

from skinscore.services.allowance import (
    DAILY,
    MONTHLY,
    UNLIMITED,
    compute_allowance,
    period_start,
    reset_boundary,
)

NOW = datetime(2026, 3, 14, 15, 30)
THIS_MONTH = datetime(2026, 3, 1)


@pytest.mark.parametrize("used", [0, 5, 50, 10_000])
def test_premium_is_always_permitted(used):
    allowance = compute_allowance(True, used, 5, THIS_MONTH, NOW, MONTHLY)

    assert allowance.permitted is True
    assert allowance.remaining == UNLIMITED
    assert allowance.unlimited


@pytest.mark.parametrize("used,remaining", [(0, 5), (3, 2), (4, 1), (5, 0), (7, 0)])
def test_free_remaining_is_limit_minus_used(used, remaining):
    allowance = compute_allowance(False, used, 5, THIS_MONTH, NOW, MONTHLY)

    assert allowance.remaining == remaining
    assert allowance.permitted is (remaining > 0)


def test_exhausted_scan_quota():
    allowance = compute_allowance(False, 5, 5, THIS_MONTH, NOW, MONTHLY)

    assert allowance.permitted is False
    assert allowance.remaining == 0
    assert allowance.resets_at == datetime(2026, 4, 1)


def test_usage_from_previous_month_is_ignored():
    """A count recorded before the boundary gives the full quota after it, with no reset write."""
    allowance = compute_allowance(False, 5, 5, datetime(2026, 2, 1), NOW, MONTHLY)

    assert allowance.used == 0
    assert allowance.remaining == 5
    assert allowance.permitted is True
    assert allowance.resets_at == datetime(2026, 4, 1)


def test_daily_quota_resets_at_midnight():
    yesterday = datetime(2026, 3, 13)
    before_midnight = datetime(2026, 3, 13, 23, 59, 59)
    at_midnight = datetime(2026, 3, 14)

    assert compute_allowance(False, 3, 3, yesterday, before_midnight, DAILY).remaining == 0
    assert compute_allowance(False, 3, 3, yesterday, at_midnight, DAILY).remaining == 3


def test_never_used_counter_has_full_quota():
    allowance = compute_allowance(False, 0, 3, None, NOW, DAILY)

    assert allowance.remaining == 3
    assert allowance.resets_at == datetime(2026, 3, 15)


def test_period_boundaries():
    assert period_start(MONTHLY, NOW) == THIS_MONTH
    assert period_start(DAILY, NOW) == datetime(2026, 3, 14)
    assert reset_boundary(MONTHLY, datetime(2026, 12, 31, 23)) == datetime(2027, 1, 1)
    assert reset_boundary(DAILY, datetime(2026, 2, 28, 8)) == datetime(2026, 3, 1)


def test_unknown_period_is_rejected():
    with pytest.raises(ValueError):
        period_start("weekly", NOW)
