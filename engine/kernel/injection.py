"""
Quipli Kernel: Injection Adapter

Puts accepted text into the host's native comment editor. The editor is
usually revealed lazily after the item's comment action is clicked, so the
adapter waits for it with a mutation observer instead of a fixed sleep.
"""

from __future__ import annotations

import asyncio
import logging

from engine.kernel.context import EngineContext
from engine.kernel.dom import Event, MutationObserver, MutationRecord, Node
from engine.kernel.errors import DomError, EditorNotFoundError, InjectionError
from engine.kernel.selectors import Strategy, TargetKind, query
from engine.kernel.types import ItemRecord

logger = logging.getLogger(__name__)


async def wait_for_target(
    container: Node,
    kind: TargetKind,
    timeout: float,
    strategies: dict[TargetKind, tuple[Strategy, ...]] | None = None,
) -> Node | None:
    """
    Resolve to the first ``kind`` target under ``container``.

    Returns immediately when one is already present, otherwise watches the
    container's subtree until one appears or ``timeout`` seconds pass.
    Returns None on timeout.
    """
    found = query(container, kind, strategies)
    if found is not None:
        return found

    loop = asyncio.get_running_loop()
    future: asyncio.Future[Node] = loop.create_future()

    def on_mutations(_records: list[MutationRecord]) -> None:
        if future.done():
            return
        target = query(container, kind, strategies)
        if target is not None:
            future.set_result(target)

    observer = MutationObserver(on_mutations)
    observer.observe(container)
    try:
        return await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError:
        return None
    finally:
        observer.disconnect()


class InjectionAdapter:
    def __init__(self, ctx: EngineContext) -> None:
        self.ctx = ctx

    async def inject(self, record: ItemRecord, text: str) -> Node:
        """
        Reveal the editor, then insert ``text`` into it.

        Raises:
            EditorNotFoundError: no editable surface appeared in time
            InjectionError: the editor could not be focused or written
        """
        container = record.node
        if not container.is_connected:
            raise InjectionError()

        reveal = query(container, TargetKind.REVEAL_ACTION, self.ctx.strategies)
        if reveal is not None:
            reveal.click()
        else:
            logger.debug("injection: no reveal action on item %d", record.handle)
        if not container.is_connected:
            logger.info("injection: item %d was detached after revealing the editor", record.handle)
            raise InjectionError()

        try:
            editor = await wait_for_target(
                container,
                TargetKind.EDITABLE_SURFACE,
                self.ctx.timings.editor_timeout,
                self.ctx.strategies,
            )
        except DomError as exc:
            raise InjectionError() from exc
        if editor is None:
            raise EditorNotFoundError()

        try:
            editor.focus()
        except DomError as exc:
            raise InjectionError() from exc
        await asyncio.sleep(self.ctx.timings.focus_settle)

        if self._insert_direct(editor, text):
            logger.debug("injection: inserted via editing commands on item %d", record.handle)
        else:
            logger.debug("injection: editing commands unavailable, rewriting editor on item %d", record.handle)
            self._rewrite(editor, text)
        return editor

    def _insert_direct(self, editor: Node, text: str) -> bool:
        document = editor.document
        if document is None:
            return False
        # selectAll first so insertText replaces any placeholder content.
        document.exec_command("selectAll")
        return document.exec_command("insertText", text)

    def _rewrite(self, editor: Node, text: str) -> None:
        if not editor.is_connected:
            raise InjectionError()
        try:
            editor.replace_children(Node("p", children=[Node.text_node(text)]))
            editor.dispatch_event(Event("input", data=text, input_type="insertText"))
            editor.dispatch_event(Event("change"))
        except DomError as exc:
            raise InjectionError() from exc
