"""
Background Auto-Completion Worker
=================================

Runs every ``AUTO_COMPLETE_INTERVAL_SECONDS`` (default 60 s) when
``AUTO_COMPLETE_ENABLED`` is set.  Each cycle moves APPROVED rides whose
scheduled time has passed to COMPLETED -- the production counterpart of the
admin-triggered completion simulator.  No audit record is written.

Concurrency safety
------------------
* **Redis distributed lock** ensures only one API process sweeps per cycle.
* Each ride is completed with a conditional UPDATE (``status = APPROVED``),
  so a requester cancelling at the same moment wins or loses cleanly.
"""

from __future__ import annotations

import asyncio
import logging

from src.config import settings
from src.infrastructure.database import async_session_factory
from src.infrastructure.locks import DistributedLock
from src.infrastructure.redis_client import get_redis
from src.infrastructure.repositories import RideRepository
from src.services.simulation import CompletionSimulator

logger = logging.getLogger(__name__)

LOCK_NAME = "ride_auto_completion"

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_completion_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Auto-completion worker started (interval=%ds)",
        settings.auto_complete_interval_seconds,
    )


async def stop_completion_loop() -> None:
    global _task, _stop_event
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    _task = _stop_event = None
    logger.info("Auto-completion worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    """Periodic loop: run a cycle then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_completion_cycle()
        except Exception:
            logger.exception("Unhandled error in auto-completion cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.auto_complete_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle


async def run_completion_cycle(session_factory=async_session_factory) -> int:
    """Execute one cycle.  Returns the number of rides completed."""
    lock = DistributedLock(
        get_redis(), LOCK_NAME, ttl_seconds=settings.auto_complete_interval_seconds
    )
    if not await lock.acquire():
        logger.debug("Lock held by another worker - skipping cycle")
        return 0

    completed = 0
    try:
        async with session_factory() as session:
            try:
                completed = await CompletionSimulator(
                    RideRepository(session)
                ).complete_overdue()
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        if completed:
            logger.info("Auto-completion cycle: %d rides completed", completed)
    finally:
        await lock.release()

    return completed
