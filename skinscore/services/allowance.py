"""
Allowance calculation for quota-limited actions.

Everything here is pure: callers pass in the stored counter, its period start
and the current time. Resets are lazy. Once "now" reaches the boundary after
the stored period start, the stored count is ignored and the full limit is
available, whether or not anything has rewritten the counter yet.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from pydantic import BaseModel

from skinscore.core.config import settings

DAILY = "daily"
MONTHLY = "monthly"

# Premium accounts get this instead of a number
UNLIMITED = "unlimited"


class Quota(BaseModel):
    """Where a quota domain keeps its counter on the profile, and its limit."""
    name: str
    period: str
    limit: int
    counter_field: str
    reset_field: str

    class Config:
        frozen = True


SCAN_QUOTA = Quota(
    name="scan",
    period=MONTHLY,
    limit=settings.FREE_SCAN_LIMIT,
    counter_field="monthly_scans_used",
    reset_field="scans_reset_at",
)

CHAT_QUOTA = Quota(
    name="chat",
    period=DAILY,
    limit=settings.FREE_CHAT_LIMIT,
    counter_field="daily_questions_used",
    reset_field="questions_reset_at",
)


class Allowance(BaseModel):
    used: int
    remaining: Union[int, str]
    limit: int
    is_premium: bool
    permitted: bool
    resets_at: Optional[datetime] = None

    class Config:
        frozen = True

    @property
    def unlimited(self) -> bool:
        return self.remaining == UNLIMITED


def period_start(period: str, moment: datetime) -> datetime:
    """Start (UTC midnight) of the day or month containing ``moment``."""
    day = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == DAILY:
        return day
    if period == MONTHLY:
        return day.replace(day=1)
    raise ValueError(f"Unknown quota period: {period}")


def reset_boundary(period: str, last_reset_at: datetime) -> datetime:
    """The first instant of the period after the one containing ``last_reset_at``."""
    start = period_start(period, last_reset_at)
    if period == DAILY:
        return start + timedelta(days=1)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def is_expired(period: str, last_reset_at: Optional[datetime], now: datetime) -> bool:
    return last_reset_at is None or now >= reset_boundary(period, last_reset_at)


def compute_allowance(
    is_premium: bool,
    usage_count: int,
    limit: int,
    last_reset_at: Optional[datetime],
    now: datetime,
    period: str = MONTHLY
) -> Allowance:
    """Work out what a user may still do in the current period."""
    if is_premium:
        return Allowance(
            used=usage_count,
            remaining=UNLIMITED,
            limit=limit,
            is_premium=True,
            permitted=True,
        )

    if is_expired(period, last_reset_at, now):
        used = 0
        resets_at = reset_boundary(period, now)
    else:
        used = usage_count
        resets_at = reset_boundary(period, last_reset_at)

    remaining = max(0, limit - used)
    return Allowance(
        used=used,
        remaining=remaining,
        limit=limit,
        is_premium=False,
        permitted=remaining > 0,
        resets_at=resets_at,
    )
