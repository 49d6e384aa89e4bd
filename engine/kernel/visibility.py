"""
Quipli Kernel: Visibility Gate

Turns "present in the tree" into "worth processing". An item is handed on
the first time at least 30% of it is in view, and never again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from engine.kernel.context import EngineContext
from engine.kernel.dom import IntersectionEntry, IntersectionObserver
from engine.kernel.types import ItemRecord, LifecycleState

logger = logging.getLogger(__name__)


class VisibilityGate:
    """One-shot readiness per item, backed by an IntersectionObserver."""

    def __init__(self, ctx: EngineContext, on_ready: Callable[[ItemRecord], None]) -> None:
        self.ctx = ctx
        self._on_ready = on_ready
        self._observer: IntersectionObserver | None = None

    @property
    def connected(self) -> bool:
        return self._observer is not None

    def connect(self) -> None:
        if self._observer is None:
            self._observer = IntersectionObserver(
                self.ctx.document,
                self._on_entries,
                threshold=self.ctx.visibility_threshold,
            )

    def disconnect(self) -> None:
        if self._observer is not None:
            self._observer.disconnect()
            self._observer = None

    def register(self, record: ItemRecord) -> bool:
        """Start watching ``record``. Rejected when processed or already watched."""
        if self._observer is None:
            return False
        if self.ctx.registry.is_processed(record.handle):
            return False
        if self._observer.observing(record.node):
            return False
        self._observer.observe(record.node)
        return True

    def forget(self, record: ItemRecord) -> None:
        if self._observer is not None:
            self._observer.unobserve(record.node)

    def _on_entries(self, entries: list[IntersectionEntry]) -> None:
        for entry in entries:
            if not entry.is_intersecting:
                continue
            record = self.ctx.registry.lookup(entry.target)
            if record is None:
                self._observer_unobserve(entry)
                continue
            if not self.ctx.registry.mark_processed(record.handle):
                continue
            self._observer_unobserve(entry)
            logger.debug("gate: item %d visible (%.0f%%)", record.handle, entry.ratio * 100)
            self.ctx.lifecycle.transition(record, LifecycleState.READY)
            self._on_ready(record)

    def _observer_unobserve(self, entry: IntersectionEntry) -> None:
        if self._observer is not None:
            self._observer.unobserve(entry.target)
