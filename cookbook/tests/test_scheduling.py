from __future__ import annotations

import asyncio

from cookbook.scheduling import AsyncioScheduler, DebounceTable


def test_schedule_replaces_pending_callback(scheduler):
    table = DebounceTable(scheduler)
    fired: list[str] = []
    table.schedule("k", 5, lambda: fired.append("first"))
    table.schedule("k", 5, lambda: fired.append("second"))
    scheduler.advance(5)
    assert fired == ["second"]
    assert not table.is_pending("k")


def test_keys_are_independent(scheduler):
    table = DebounceTable(scheduler)
    fired: list[str] = []
    table.schedule("a", 1, lambda: fired.append("a"))
    table.schedule("b", 2, lambda: fired.append("b"))
    assert table.keys() == {"a", "b"}
    assert table.cancel("a") is True
    assert table.cancel("a") is False
    scheduler.advance(2)
    assert fired == ["b"]


def test_asyncio_scheduler_runs_on_loop():
    fired: list[int] = []

    async def main():
        scheduler = AsyncioScheduler()
        table = DebounceTable(scheduler)
        table.schedule("k", 0.01, lambda: fired.append(1))
        table.schedule("k", 0.01, lambda: fired.append(2))
        await asyncio.sleep(0.05)
        assert scheduler.now().tzinfo is not None

    asyncio.run(main())
    assert fired == [2]
