"""
Quipli Kernel: Assembly Layer

Builds the EngineContext, binds every component to it and exposes the
operations the host application drives: start, stop, apply settings
changes, and the per-item preview actions.

This is the only place that knows how the components are wired together.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from engine.kernel.admission import AdmissionController
from engine.kernel.context import EngineContext
from engine.kernel.dom import Document, Node
from engine.kernel.injection import InjectionAdapter
from engine.kernel.lifecycle import ItemLifecycle
from engine.kernel.selectors import STRATEGIES, Strategy, TargetKind
from engine.kernel.types import (
    MAX_CONCURRENCY,
    CommentGenerator,
    EngineTimings,
    ItemRecord,
    LifecycleState,
    SettingsSnapshot,
)
from engine.kernel.ui import ItemUI
from engine.kernel.visibility import VisibilityGate
from engine.kernel.watcher import DocumentWatcher

logger = logging.getLogger(__name__)


class CommentEngine:
    """
    Watches a document and drives comment generation for its items.

    Usage:
        engine = CommentEngine(document, generator, snapshot)
        engine.start()
        ...
        engine.apply_changes({"enabled": False})
    """

    def __init__(
        self,
        document: Document,
        generator: CommentGenerator,
        settings: SettingsSnapshot | None = None,
        *,
        timings: EngineTimings | None = None,
        max_concurrency: int = MAX_CONCURRENCY,
        strategies: dict[TargetKind, tuple[Strategy, ...]] | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        ctx = EngineContext(
            document=document,
            generator=generator,
            settings=settings or SettingsSnapshot(),
            timings=timings or EngineTimings(),
            max_concurrency=max_concurrency,
            strategies=dict(strategies or STRATEGIES),
        )
        ctx.lifecycle = ItemLifecycle(ctx)
        ctx.ui = ItemUI(ctx)
        ctx.admission = AdmissionController(ctx)
        ctx.injector = InjectionAdapter(ctx)
        ctx.gate = VisibilityGate(ctx, ctx.lifecycle.on_ready)
        ctx.watcher = DocumentWatcher(ctx)
        self.ctx = ctx

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self.ctx.active

    @property
    def settings(self) -> SettingsSnapshot:
        return self.ctx.settings

    def start(self) -> None:
        if self.ctx.active:
            return
        logger.info("engine: starting (provider=%s, model=%s)", self.ctx.settings.provider, self.ctx.settings.model)
        self.ctx.active = True
        self.ctx.watcher.activate()
        self.ctx.admission.resume()

    def stop(self) -> None:
        if not self.ctx.active:
            return
        self.ctx.active = False
        self.ctx.watcher.deactivate()
        removed = ItemUI.cleanup_all(self.ctx.document)
        logger.info("engine: stopped, removed %d UI element(s)", removed)

    def apply_changes(self, changes: dict[str, Any]) -> None:
        """
        Take a settings change notification.

        The snapshot is replaced for subsequent requests. The engine only
        starts or stops on an actual transition of ``enabled``.
        """
        previous = self.ctx.settings
        self.ctx.settings = previous.merged(changes)
        if "enabled" not in changes:
            return
        if self.ctx.settings.enabled and not previous.enabled:
            self.start()
        elif not self.ctx.settings.enabled and previous.enabled:
            self.stop()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def record_for(self, node: Node) -> ItemRecord | None:
        return self.ctx.registry.lookup(node)

    def state_of(self, node: Node) -> LifecycleState | None:
        record = self.record_for(node)
        return record.state if record is not None else None

    def accept(self, node: Node) -> asyncio.Task[None] | None:
        record = self.record_for(node)
        return self.ctx.lifecycle.accept(record) if record is not None else None

    def dismiss(self, node: Node) -> None:
        record = self.record_for(node)
        if record is not None:
            self.ctx.lifecycle.dismiss(record)

    def regenerate(self, node: Node) -> bool:
        record = self.record_for(node)
        return self.ctx.lifecycle.regenerate(record) if record is not None else False

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> frozenset[int]:
        return self.ctx.admission.in_flight

    @property
    def queued(self) -> tuple[int, ...]:
        return self.ctx.admission.queued

    async def wait_idle(self) -> None:
        """Wait until no generation or injection task is pending."""
        while True:
            # Let pending observer deliveries run first.
            for _ in range(3):
                await asyncio.sleep(0)
            tasks = self.ctx.admission.tasks | self.ctx.lifecycle.tasks
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)
