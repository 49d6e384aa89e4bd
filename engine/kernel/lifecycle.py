"""
Quipli Kernel: Item Lifecycle

Per-item state machine for the generate → preview → accept / dismiss /
regenerate workflow. Every transition goes through ``transition`` and is
checked against TRANSITIONS; entering a new rendering state clears the
item's previous UI first so no item ever shows two states at once.

    DISCOVERED → READY → QUEUED → GENERATING → PREVIEW | ERROR
    PREVIEW → ACCEPTED | DISMISSED | GENERATING (regenerate)
    ERROR → IDLE (after the auto-clear delay, or at once when never rendered)
"""

from __future__ import annotations

import asyncio
import logging

from engine.kernel.context import EngineContext
from engine.kernel.dom import Node
from engine.kernel.errors import ErrorKind, InvalidTransition, QuipliError
from engine.kernel.selectors import extract_text
from engine.kernel.types import (
    MIN_TEXT_LENGTH,
    TRANSITIONS,
    Comment,
    Failure,
    GenerationResult,
    ItemRecord,
    LifecycleState,
)

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "All generation slots are busy - try Regenerate again in a moment"


class ItemLifecycle:
    """Drives each item from readiness through resolution."""

    def __init__(self, ctx: EngineContext) -> None:
        self.ctx = ctx
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def tasks(self) -> frozenset[asyncio.Task[None]]:
        return frozenset(self._tasks)

    def transition(self, record: ItemRecord, state: LifecycleState) -> None:
        if state not in TRANSITIONS[record.state]:
            raise InvalidTransition(f"item {record.handle}: {record.state.value} -> {state.value}")
        logger.debug("lifecycle: item %d %s -> %s", record.handle, record.state.value, state.value)
        record.state = state

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def on_ready(self, record: ItemRecord) -> None:
        """Entry point from the Visibility Gate."""
        if not self.ctx.active:
            return
        text = extract_text(record.node, self.ctx.strategies)
        if len(text) < MIN_TEXT_LENGTH:
            logger.debug("lifecycle: skipping item %d, text too short (%d chars)", record.handle, len(text))
            self.transition(record, LifecycleState.SKIPPED)
            return

        if self.ctx.ui.anchor(record) is None:
            logger.warning("lifecycle: item %d has no UI anchor, cannot attach UI", record.handle)
            self.transition(record, LifecycleState.SKIPPED)
            return

        record.text = text
        logger.info("lifecycle: processing item %d (%d chars): %r", record.handle, len(text), text[:60])
        self.ctx.admission.submit(record.handle, text)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def begin(self, record: ItemRecord) -> None:
        """Enter GENERATING: clear prior UI and show the loader."""
        self.transition(record, LifecycleState.GENERATING)
        record.preview = None
        self.ctx.ui.clear(record)
        self.ctx.ui.show_loader(record)

    async def generate(self, record: ItemRecord, text: str) -> None:
        """Issue exactly one generation request and settle the item."""
        try:
            result = await self.ctx.generator.generate_comment(text, self.ctx.settings)
        except Exception as exc:
            logger.exception("lifecycle: generator raised for item %d", record.handle)
            result = Failure(ErrorKind.NETWORK, str(exc) or "Failed to generate comment")
        self.finish(record, result)

    def finish(self, record: ItemRecord, result: GenerationResult) -> None:
        if isinstance(result, Comment):
            self.transition(record, LifecycleState.PREVIEW)
            record.preview = result.text
        else:
            self.transition(record, LifecycleState.ERROR)

        if self.ctx.registry.get(record.handle) is not record or not record.attached:
            logger.info("lifecycle: discarding result for detached item %d", record.handle)
            self._settle_unrendered(record)
            return
        if not self.ctx.active:
            logger.info("lifecycle: engine stopped, not rendering item %d", record.handle)
            self._settle_unrendered(record)
            return

        self.ctx.ui.remove_loader(record)
        if isinstance(result, Comment):
            logger.info("lifecycle: comment ready for item %d: %r", record.handle, result.text[:80])
            self.ctx.ui.show_preview(
                record,
                result.text,
                on_accept=lambda: self.accept(record),
                on_dismiss=lambda: self.dismiss(record),
                on_regenerate=lambda: self.regenerate(record),
            )
        else:
            logger.warning("lifecycle: item %d failed (%s): %s", record.handle, result.kind.value, result.message)
            self._show_transient(record, result.message, settle=True)

    def _settle_unrendered(self, record: ItemRecord) -> None:
        # An error nobody sees has nothing to auto-clear.
        if record.state is LifecycleState.ERROR:
            self.transition(record, LifecycleState.IDLE)

    # ------------------------------------------------------------------
    # Preview actions
    # ------------------------------------------------------------------

    def accept(self, record: ItemRecord) -> asyncio.Task[None] | None:
        if record.state is not LifecycleState.PREVIEW:
            return None
        text = record.preview or ""
        self.ctx.ui.clear(record)
        self.transition(record, LifecycleState.ACCEPTED)
        task = asyncio.get_running_loop().create_task(self._inject(record, text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def dismiss(self, record: ItemRecord) -> None:
        if record.state is not LifecycleState.PREVIEW:
            return
        self.ctx.ui.clear(record)
        self.transition(record, LifecycleState.DISMISSED)

    def regenerate(self, record: ItemRecord) -> bool:
        if record.state is not LifecycleState.PREVIEW:
            return False
        if self.ctx.admission.readmit(record.handle, record.text):
            return True
        logger.info("lifecycle: no free slot to regenerate item %d", record.handle)
        self._show_transient(record, BUSY_MESSAGE, settle=False, inline=True)
        return False

    async def _inject(self, record: ItemRecord, text: str) -> None:
        try:
            await self.ctx.injector.inject(record, text)
        except QuipliError as exc:
            logger.warning("lifecycle: injection failed for item %d: %s", record.handle, exc.message)
            if record.attached and record.node.is_connected and self.ctx.active:
                self._show_transient(record, exc.message, settle=False)
        else:
            logger.info("lifecycle: comment injected for item %d", record.handle)

    # ------------------------------------------------------------------
    # Transient messages
    # ------------------------------------------------------------------

    def _show_transient(self, record: ItemRecord, message: str, *, settle: bool, inline: bool = False) -> None:
        """Render ``message`` and remove it after the auto-clear delay.

        With ``settle`` the item also leaves ERROR for IDLE at that point.
        With ``inline`` the message goes inside the preview's action strip.
        """
        if inline:
            element = self.ctx.ui.show_notice(record, message)
        else:
            element = self.ctx.ui.show_error(record, message)

        def fire() -> None:
            if timer in record.timers:
                record.timers.remove(timer)
            self._clear_transient(record, element, settle)

        timer = asyncio.get_running_loop().call_later(self.ctx.timings.error_clear, fire)
        record.timers.append(timer)

    def _clear_transient(self, record: ItemRecord, element: Node | None, settle: bool) -> None:
        if element is not None:
            element.remove()
        if settle and record.state is LifecycleState.ERROR:
            self.transition(record, LifecycleState.IDLE)
