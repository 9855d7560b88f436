from __future__ import annotations

import asyncio

import pytest

from federated_tasks.attendance import SingleFlightRefresh, refresh_best_effort

from conftest import CountingRefresher


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_run():
    release = asyncio.Event()
    runs = 0

    async def refresh():
        nonlocal runs
        runs += 1
        await release.wait()
        return {"updated": 3}

    guard = SingleFlightRefresh(refresh, min_gap_seconds=0)
    callers = [asyncio.ensure_future(guard.refresh_sync()) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*callers)

    assert runs == 1
    assert results == [{"updated": 3}] * 5


@pytest.mark.asyncio
async def test_recent_run_is_skipped_until_gap_elapses():
    clock = FakeClock()
    inner = CountingRefresher()
    guard = SingleFlightRefresh(inner.refresh_sync, min_gap_seconds=55.0, clock=clock)

    assert await guard.refresh_sync() == {"updated": 0}
    clock.now += 30
    assert await guard.refresh_sync() == {"skipped": True}
    clock.now += 30
    assert await guard.refresh_sync() == {"updated": 0}
    assert inner.calls == 2


@pytest.mark.asyncio
async def test_failed_run_still_starts_the_gap():
    clock = FakeClock()
    inner = CountingRefresher(fail=True)
    guard = SingleFlightRefresh(inner.refresh_sync, min_gap_seconds=55.0, clock=clock)

    with pytest.raises(RuntimeError):
        await guard.refresh_sync()
    assert await guard.refresh_sync() == {"skipped": True}
    assert inner.calls == 1

    inner.fail = False
    clock.now += 60
    assert await guard.refresh_sync() == {"updated": 0}
    assert inner.calls == 2


@pytest.mark.asyncio
async def test_best_effort_swallows_failures():
    failing = CountingRefresher(fail=True)
    assert await refresh_best_effort(failing) is None
    assert failing.calls == 1

    assert await refresh_best_effort(None) is None
    assert await refresh_best_effort(CountingRefresher()) == {"updated": 0}
