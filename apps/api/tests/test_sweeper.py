"""Tests for the periodic box eviction task."""
from __future__ import annotations

import asyncio

import pytest

from boxrelay.services import sweeper
from boxrelay.services.registry import BoxRegistry
from boxrelay.services.store import BoxStore


@pytest.mark.asyncio
async def test_sweep_once_uses_clock_and_retention():
    store = BoxStore()
    registry = BoxRegistry(store=store)
    store.set("stale", "old", 0.0)
    store.set("recent", "new", 90.0)

    evicted = await sweeper.sweep_once(registry, max_age=50.0, clock=lambda: 100.0)

    assert evicted == ["stale"]
    assert await registry.get_text("recent") == "new"


@pytest.mark.asyncio
async def test_eviction_loop_keeps_running_after_failure(monkeypatch):
    registry = BoxRegistry()
    calls: list[float] = []

    async def flaky_sweep(_registry, max_age, clock):
        calls.append(max_age)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return []

    monkeypatch.setattr(sweeper, "sweep_once", flaky_sweep)

    task = asyncio.create_task(sweeper.run_eviction_loop(registry, interval=0.001, max_age=7.0))
    for _ in range(200):
        if len(calls) >= 2:
            break
        await asyncio.sleep(0.005)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(calls) >= 2
    assert calls[0] == 7.0
