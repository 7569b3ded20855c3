"""
Tests for waitlist signups and their early-bird seat
"""
import pytest

from skinscore.core.exceptions import AlreadyOnWaitlist, StoreUnavailable
from skinscore.services.capacity import CapacityCounter
from skinscore.services.waitlist import WaitlistService


class FlakyPool(CapacityCounter):
    """Fails the first reservation the way an unreachable store does."""

    def __init__(self, failures=1):
        super().__init__("early_bird", 100)
        self.failures = failures

    async def try_reserve(self):
        if self.failures:
            self.failures -= 1
            raise StoreUnavailable("No servers found yet")
        return await super().try_reserve()


@pytest.mark.asyncio
async def test_join_takes_a_seat(fake_db):
    service = WaitlistService(pool=CapacityCounter("early_bird", 100))

    reservation = await service.join("Sam@Example.com")

    assert reservation.granted is True
    assert fake_db.waitlist.docs[0]["email"] == "sam@example.com"
    assert fake_db.waitlist.docs[0]["early_bird"] is True


@pytest.mark.asyncio
async def test_second_join_is_rejected_without_a_seat(fake_db):
    service = WaitlistService(pool=CapacityCounter("early_bird", 100))
    await service.join("sam@example.com")

    with pytest.raises(AlreadyOnWaitlist):
        await service.join("sam@example.com")

    assert fake_db.counters.docs[0]["count"] == 1


@pytest.mark.asyncio
async def test_failed_reservation_removes_the_signup(fake_db):
    service = WaitlistService(pool=FlakyPool())

    with pytest.raises(StoreUnavailable):
        await service.join("sam@example.com")

    assert fake_db.waitlist.docs == []
    assert fake_db.counters.docs == []


@pytest.mark.asyncio
async def test_retry_after_failed_reservation_gets_a_seat(fake_db):
    service = WaitlistService(pool=FlakyPool())

    with pytest.raises(StoreUnavailable):
        await service.join("sam@example.com")
    reservation = await service.join("sam@example.com")

    assert reservation.granted is True
    assert len(fake_db.waitlist.docs) == 1
    assert fake_db.waitlist.docs[0]["early_bird"] is True
    assert fake_db.counters.docs[0]["count"] == 1
