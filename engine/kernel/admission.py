"""
Quipli Kernel: Admission Controller

Bounds how many generations are in flight and queues the rest in strict
arrival order. Release and queue drain happen in one synchronous block, so
no other callback can see a freed slot that has not been redispatched yet.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum

from engine.kernel.context import EngineContext
from engine.kernel.types import ItemRecord, LifecycleState, QueueEntry

logger = logging.getLogger(__name__)


class Admission(str, Enum):
    STARTED = "started"
    QUEUED = "queued"
    DUPLICATE = "duplicate"
    DROPPED = "dropped"


class AdmissionController:
    """Concurrency ceiling plus FIFO overflow queue."""

    def __init__(self, ctx: EngineContext) -> None:
        self.ctx = ctx
        self._in_flight: set[int] = set()
        self._queue: deque[QueueEntry] = deque()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> frozenset[int]:
        return frozenset(self._in_flight)

    @property
    def queued(self) -> tuple[int, ...]:
        return tuple(entry.handle for entry in self._queue)

    @property
    def tasks(self) -> frozenset[asyncio.Task[None]]:
        return frozenset(self._tasks)

    def has_slot(self) -> bool:
        return len(self._in_flight) < self.ctx.max_concurrency

    def submit(self, handle: int, text: str) -> Admission:
        """Start now if a slot is free, otherwise append to the queue."""
        if handle in self._in_flight or any(entry.handle == handle for entry in self._queue):
            return Admission.DUPLICATE
        record = self.ctx.registry.get(handle)
        if record is None or not record.attached:
            return Admission.DROPPED
        if self.has_slot():
            self._start(record, text)
            return Admission.STARTED
        self._queue.append(QueueEntry(handle=handle, text=text))
        self.ctx.lifecycle.transition(record, LifecycleState.QUEUED)
        logger.info("admission: queued item %d (%d in queue)", handle, len(self._queue))
        return Admission.QUEUED

    def readmit(self, handle: int, text: str) -> bool:
        """
        Regenerate fast path.

        Never touches the queue. Takes a free slot immediately, or returns
        False when every slot is busy.
        """
        if handle in self._in_flight:
            return False
        record = self.ctx.registry.get(handle)
        if record is None or not record.attached or not self.has_slot():
            return False
        self._start(record, text)
        return True

    def _start(self, record: ItemRecord, text: str) -> None:
        self._in_flight.add(record.handle)
        self.ctx.lifecycle.begin(record)
        logger.info(
            "admission: generating item %d (%d/%d in flight)",
            record.handle,
            len(self._in_flight),
            self.ctx.max_concurrency,
        )
        task = asyncio.get_running_loop().create_task(self._run(record, text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, record: ItemRecord, text: str) -> None:
        try:
            await self.ctx.lifecycle.generate(record, text)
        except Exception:
            logger.exception("admission: generation for item %d failed unexpectedly", record.handle)
        finally:
            self._release(record.handle)

    def _release(self, handle: int) -> None:
        self._in_flight.discard(handle)
        self._drain()

    def resume(self) -> None:
        """Dispatch queued work after the engine is (re)started."""
        self._drain()

    def _drain(self) -> None:
        # Queued work waits while the engine is stopped.
        while self._queue and self.has_slot() and self.ctx.active:
            entry = self._queue.popleft()
            record = self.ctx.registry.get(entry.handle)
            if record is None or not record.attached:
                logger.info("admission: dropping detached item %d from queue", entry.handle)
                if record is not None:
                    self.ctx.registry.remove(entry.handle)
                continue
            self._start(record, entry.text)
