"""
Tests for the globally capped early-bird pool
"""
import asyncio

import pytest

from skinscore.services.capacity import CapacityCounter


def set_count(db, count):
    db.counters.docs.append({"_id": "early_bird", "count": count})


@pytest.mark.asyncio
async def test_first_reservation_seeds_counter(fake_db):
    pool = CapacityCounter("early_bird", 100)

    reservation = await pool.try_reserve()

    assert reservation.granted is True
    assert reservation.spotsTaken == 1
    assert reservation.spotsRemaining == 99


@pytest.mark.asyncio
async def test_full_pool_denies(fake_db):
    set_count(fake_db, 100)
    pool = CapacityCounter("early_bird", 100)

    reservation = await pool.try_reserve()

    assert reservation.granted is False
    assert reservation.spotsRemaining == 0
    assert fake_db.counters.docs[0]["count"] == 100


@pytest.mark.asyncio
async def test_last_seat_goes_to_exactly_one_of_two(fake_db):
    set_count(fake_db, 99)
    pool = CapacityCounter("early_bird", 100)

    results = await asyncio.gather(pool.try_reserve(), pool.try_reserve())

    assert sorted(r.granted for r in results) == [False, True]
    assert fake_db.counters.docs[0]["count"] == 100


@pytest.mark.asyncio
async def test_concurrent_reservations_never_exceed_limit(fake_db):
    set_count(fake_db, 90)
    pool = CapacityCounter("early_bird", 100)

    results = await asyncio.gather(*(pool.try_reserve() for _ in range(25)))

    assert sum(r.granted for r in results) == 10
    assert fake_db.counters.docs[0]["count"] == 100
    status = await pool.get_status()
    assert status.spotsTaken == 100
    assert status.available is False


@pytest.mark.asyncio
async def test_concurrent_reservations_on_empty_pool(fake_db):
    pool = CapacityCounter("early_bird", 3)

    results = await asyncio.gather(*(pool.try_reserve() for _ in range(8)))

    assert sum(r.granted for r in results) == 3
    assert len(fake_db.counters.docs) == 1


@pytest.mark.asyncio
async def test_status_without_any_signups(fake_db):
    status = await CapacityCounter("early_bird", 100).get_status()

    assert status.available is True
    assert status.spotsTaken == 0
    assert status.spotsRemaining == 100
    assert status.percentageTaken == 0
    assert status.limit == 100


@pytest.mark.asyncio
async def test_status_is_read_only(fake_db):
    set_count(fake_db, 37)
    pool = CapacityCounter("early_bird", 100)

    first = await pool.get_status()
    second = await pool.get_status()

    assert first == second
    assert first.percentageTaken == 37
    assert first.spotsRemaining == 63
