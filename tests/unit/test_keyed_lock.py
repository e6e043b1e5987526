"""Tests for cc_common.keyed_lock.KeyedLocks."""

import asyncio

from src.cc_common.keyed_lock import KeyedLocks, account_lock_key, listing_lock_key


def test_lock_keys_are_namespaced() -> None:
    assert account_lock_key("a@x.com") == "account:a@x.com"
    assert listing_lock_key("L1") == "listing:L1"


async def test_hold_marks_key_locked() -> None:
    locks = KeyedLocks()
    assert locks.locked("k") is False
    async with locks.hold("k"):
        assert locks.locked("k") is True
    assert locks.locked("k") is False


async def test_same_key_is_serialized() -> None:
    locks = KeyedLocks()
    events: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold("k"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    # No interleaving: each worker leaves before the next enters
    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


async def test_distinct_keys_run_concurrently() -> None:
    locks = KeyedLocks()
    inside = asyncio.Event()

    async def first() -> None:
        async with locks.hold("a"):
            await asyncio.wait_for(inside.wait(), timeout=1)

    async def second() -> None:
        async with locks.hold("b"):
            inside.set()

    await asyncio.gather(first(), second())


async def test_multi_key_in_opposite_order_does_not_deadlock() -> None:
    locks = KeyedLocks()

    async def worker(keys: tuple[str, str]) -> None:
        for _ in range(20):
            async with locks.hold(*keys):
                await asyncio.sleep(0)

    await asyncio.wait_for(asyncio.gather(worker(("x", "y")), worker(("y", "x"))), timeout=2)


async def test_duplicate_keys_are_acquired_once() -> None:
    locks = KeyedLocks()
    async with locks.hold("k", "k"):
        assert locks.locked("k")


class TestRegistrySize:
    async def test_released_key_is_dropped(self) -> None:
        locks = KeyedLocks()
        async with locks.hold("a", "b"):
            assert len(locks) == 2
        assert len(locks) == 0

    async def test_key_kept_while_a_waiter_remains(self) -> None:
        locks = KeyedLocks()
        release = asyncio.Event()

        async def holder() -> None:
            async with locks.hold("k"):
                await release.wait()

        async def waiter() -> None:
            async with locks.hold("k"):
                assert len(locks) == 1

        holding = asyncio.create_task(holder())
        await asyncio.sleep(0)
        waiting = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        assert len(locks) == 1
        release.set()
        await asyncio.gather(holding, waiting)
        assert len(locks) == 0

    async def test_failed_body_still_releases(self) -> None:
        locks = KeyedLocks()
        try:
            async with locks.hold("k"):
                raise ValueError("boom")
        except ValueError:
            pass
        assert len(locks) == 0
        assert locks.locked("k") is False

    async def test_many_distinct_keys_leave_nothing_behind(self) -> None:
        locks = KeyedLocks()

        async def touch(i: int) -> None:
            async with locks.hold(f"listing:{i}"):
                await asyncio.sleep(0)

        await asyncio.gather(*(touch(i) for i in range(1000)))
        assert len(locks) == 0
