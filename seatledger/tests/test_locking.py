"""
Tests for the keyed lock registry.
"""

import asyncio

import pytest

from seatledger.app.services.locking import KeyedLockRegistry, seat_key, student_key


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLockRegistry()
    order = []

    async def worker(name):
        async with locks.hold(seat_key(1, 1)):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    # No interleaving inside the critical section
    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    locks = KeyedLockRegistry()
    inside = asyncio.Event()

    async def holder():
        async with locks.hold(seat_key(1, 1)):
            inside.set()
            await asyncio.sleep(0.05)

    async def other():
        await inside.wait()
        async with locks.hold(seat_key(1, 2)):
            # seat 1 is still held while we are here
            return locks.is_locked(seat_key(1, 1))

    _, overlapped = await asyncio.gather(holder(), other())
    assert overlapped is True


@pytest.mark.asyncio
async def test_locks_are_discarded_when_released():
    locks = KeyedLockRegistry()
    async with locks.hold(seat_key(1, 1), student_key(1, 9)):
        assert len(locks) == 2
        assert locks.is_locked(student_key(1, 9))
        assert locks.holders(seat_key(1, 1)) == 1
    assert len(locks) == 0
    assert locks.holders(seat_key(1, 1)) == 0


@pytest.mark.asyncio
async def test_released_on_error():
    locks = KeyedLockRegistry()
    with pytest.raises(RuntimeError):
        async with locks.hold(student_key(2, 3)):
            raise RuntimeError("boom")
    assert not locks.is_locked(student_key(2, 3))
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_opposite_key_orders_do_not_deadlock():
    locks = KeyedLockRegistry()

    async def forward():
        async with locks.hold(seat_key(1, 1), student_key(1, 1)):
            await asyncio.sleep(0.01)

    async def backward():
        async with locks.hold(student_key(1, 1), seat_key(1, 1)):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(asyncio.gather(forward(), backward()), timeout=1)
