"""Periodic eviction of boxes nobody has edited for a while."""
from __future__ import annotations

import asyncio
import logging
import time

from .registry import BoxRegistry, Clock

logger = logging.getLogger(__name__)


async def sweep_once(registry: BoxRegistry, max_age: float, clock: Clock = time.time) -> list[str]:
    """Run a single eviction pass and return the removed box ids."""

    return await registry.evict_stale(clock(), max_age)


async def run_eviction_loop(
    registry: BoxRegistry,
    interval: float,
    max_age: float,
    clock: Clock = time.time,
) -> None:
    """Sweep every ``interval`` seconds until cancelled."""

    logger.info("Box eviction scheduled every %ss (retention %ss)", interval, max_age)
    while True:
        await asyncio.sleep(interval)
        try:
            await sweep_once(registry, max_age, clock)
        except Exception:  # noqa: BLE001 - keep the schedule alive
            logger.exception("Box eviction sweep failed")
