"""
Quipli Kernel: Item UI

Renders the engine's affordances next to an item's anchor. Every element
carries the reserved class prefix so the watcher can recognise its own
insertions. Elements are fully built before they are attached, so each
render shows up as a single added node in the mutation batch.
"""

from __future__ import annotations

from collections.abc import Callable

from engine.kernel.context import EngineContext
from engine.kernel.dom import Document, Node
from engine.kernel.selectors import TargetKind, query
from engine.kernel.types import UI_PREFIX, ItemRecord

LOADER = f"{UI_PREFIX}loader"
PREVIEW = f"{UI_PREFIX}comment-preview"
ACTIONS = f"{UI_PREFIX}action-strip"
ERROR = f"{UI_PREFIX}error"
NOTICE = f"{UI_PREFIX}notice"
BUTTON_ACCEPT = f"{UI_PREFIX}btn-accept"
BUTTON_DISMISS = f"{UI_PREFIX}btn-dismiss"
BUTTON_REGENERATE = f"{UI_PREFIX}btn-regenerate"


def _button(class_name: str, label: str, handler: Callable[[], object]) -> Node:
    button = Node("button", class_name=class_name, children=[Node.text_node(label)])
    button.add_event_listener("click", lambda _event: handler())
    return button


def _owned(root: Node, prefix: str) -> list[Node]:
    """Outermost prefixed elements under ``root``."""
    found = []
    for node in root.iter_descendants():
        if node.is_element and node.class_name.startswith(prefix):
            if not any(owner.contains(node) for owner in found):
                found.append(node)
    return found


class ItemUI:
    def __init__(self, ctx: EngineContext) -> None:
        self.ctx = ctx

    def anchor(self, record: ItemRecord) -> Node | None:
        return query(record.node, TargetKind.UI_ANCHOR, self.ctx.strategies)

    def rendered(self, record: ItemRecord) -> list[Node]:
        return _owned(record.node, UI_PREFIX)

    def show_loader(self, record: ItemRecord) -> Node | None:
        anchor = self.anchor(record)
        if anchor is None:
            return None
        return anchor.insert_adjacent_after(Node("div", class_name=LOADER))

    def remove_loader(self, record: ItemRecord) -> None:
        for node in list(record.node.iter_descendants()):
            if node.has_class(LOADER):
                node.remove()

    def show_preview(
        self,
        record: ItemRecord,
        text: str,
        *,
        on_accept: Callable[[], object],
        on_dismiss: Callable[[], object],
        on_regenerate: Callable[[], object],
    ) -> Node | None:
        anchor = self.anchor(record)
        if anchor is None:
            return None
        preview = Node("div", class_name=PREVIEW, children=[Node.text_node(text)])
        strip = Node(
            "div",
            class_name=ACTIONS,
            children=[
                _button(BUTTON_ACCEPT, "Accept", on_accept),
                _button(BUTTON_DISMISS, "Dismiss", on_dismiss),
                _button(BUTTON_REGENERATE, "Regenerate", on_regenerate),
            ],
        )
        anchor.insert_adjacent_after(preview)
        preview.insert_adjacent_after(strip)
        return preview

    def show_error(self, record: ItemRecord, message: str) -> Node | None:
        anchor = self.anchor(record)
        if anchor is None:
            return None
        return anchor.insert_adjacent_after(Node("div", class_name=ERROR, children=[Node.text_node(message)]))

    def show_notice(self, record: ItemRecord, message: str) -> Node | None:
        """Show ``message`` inside the preview's action strip, replacing any earlier notice."""
        strip = next((node for node in record.node.iter_descendants() if node.has_class(ACTIONS)), None)
        if strip is None:
            return self.show_error(record, message)
        for node in list(strip.iter_descendants()):
            if node.has_class(NOTICE):
                node.remove()
        return strip.append(Node("div", class_name=NOTICE, children=[Node.text_node(message)]))

    def clear(self, record: ItemRecord) -> None:
        """Remove everything the engine rendered for this item. Idempotent."""
        for node in self.rendered(record):
            node.remove()

    @staticmethod
    def cleanup_all(document: Document, prefix: str = UI_PREFIX) -> int:
        owned = _owned(document, prefix)
        for node in owned:
            node.remove()
        return len(owned)
