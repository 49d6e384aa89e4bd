"""
Quipli Kernel: Document Watcher

Keeps the Visibility Gate's population current while the host mutates
the tree. Mutation batches made only of the engine's own UI are ignored,
everything else schedules a debounced rediscovery.
"""

from __future__ import annotations

import asyncio
import logging

from engine.kernel.context import EngineContext
from engine.kernel.dom import MutationObserver, MutationRecord
from engine.kernel.selectors import TargetKind, query_all
from engine.kernel.types import UI_PREFIX

logger = logging.getLogger(__name__)


def is_own_mutation(records: list[MutationRecord], prefix: str) -> bool:
    """True when every added node is one of the engine's prefixed elements."""
    return all(
        node.is_element and node.class_name.startswith(prefix)
        for record in records
        for node in record.added_nodes
    )


class DocumentWatcher:
    """Discovery pass on activation, then debounced rediscovery on mutations."""

    def __init__(self, ctx: EngineContext) -> None:
        self.ctx = ctx
        self._observer: MutationObserver | None = None
        self._debounce: asyncio.TimerHandle | None = None
        self._active = False
        self.discovery_passes = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending_rediscovery(self) -> bool:
        return self._debounce is not None

    def activate(self) -> None:
        if self._active:
            return
        self._active = True
        self.ctx.gate.connect()
        found = self.discover()
        logger.info("watcher: initial scan, %d item(s) to watch", found)
        self._observer = MutationObserver(self._on_mutations)
        self._observer.observe(self.ctx.document.body)

    def deactivate(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._observer is not None:
            self._observer.disconnect()
            self._observer = None
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
        self.ctx.gate.disconnect()
        logger.info("watcher: stopped")

    def discover(self) -> int:
        """Register every unseen content item with the gate. Returns how many."""
        if not self._active:
            return 0
        self.discovery_passes += 1
        registry = self.ctx.registry
        added = 0
        for node in query_all(self.ctx.document, TargetKind.CONTENT_ITEM, self.ctx.strategies):
            record, _ = registry.register(node)
            if self.ctx.gate.register(record):
                added += 1
        if added:
            logger.debug("watcher: found %d new item(s) to watch", added)
        return added

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        if not self._active:
            return
        if any(record.removed_nodes for record in records):
            for removed in self.ctx.registry.sweep_detached():
                self.ctx.gate.forget(removed)
                logger.debug("watcher: item %d detached", removed.handle)
        if is_own_mutation(records, UI_PREFIX):
            return
        self._schedule()

    def _schedule(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
        loop = asyncio.get_running_loop()
        self._debounce = loop.call_later(self.ctx.timings.debounce, self._fire)

    def _fire(self) -> None:
        self._debounce = None
        if self._active:
            self.discover()
