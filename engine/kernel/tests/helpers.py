"""
Test helpers for the engine kernel.

Small feed documents that mimic the host markup the default
selector strategies target, plus the timings and settings the
engine tests share.
"""

from __future__ import annotations

import asyncio

from engine.kernel.dom import Document, Node
from engine.kernel.types import EngineTimings, SettingsSnapshot

LONG_TEXT = "Shipping a new feature every week taught our team a lot about focus."

FAST = EngineTimings(debounce=0.01, error_clear=0.05, editor_timeout=0.1, focus_settle=0)

SETTINGS = SettingsSnapshot(
    provider="claude",
    model="claude-sonnet-4-5-20250929",
    credential="sk-test-1234",
    enabled=True,
)


class Feed:
    """A feed container inside a Document, plus helpers to grow it."""

    def __init__(self, document: Document):
        self.document = document
        self.container = document.body.append(Node("main", class_name="scaffold-finite-scroll"))
        self._count = 0

    def make_post(
        self,
        text: str = LONG_TEXT,
        *,
        anchor: bool = True,
        reveal: bool = True,
        editor: bool = False,
    ) -> Node:
        self._count += 1
        post = Node("div", attrs={"data-urn": f"urn:li:activity:{self._count}"})
        post.append(Node("div", class_name="update-components-text", children=[Node.text_node(text)]))
        if anchor:
            bar = post.append(Node("div", class_name="feed-shared-social-action-bar"))
            if reveal:
                button = bar.append(Node("button", attrs={"aria-label": "Comment on this post"}))
                button.add_event_listener("click", lambda _event: self.reveal_editor(post))
        if editor:
            self.reveal_editor(post)
        return post

    def add_post(self, text: str = LONG_TEXT, *, visible: float | None = None, **kwargs) -> Node:
        post = self.container.append(self.make_post(text, **kwargs))
        if visible is not None:
            self.document.set_visible_ratio(post, visible)
        return post

    def reveal_editor(self, post: Node) -> Node:
        for node in post.iter_descendants():
            if node.is_editable:
                return node
        box = post.append(Node("div", class_name="comments-comment-box"))
        return box.append(Node("div", class_name="ql-editor", attrs={"contenteditable": "true"}))

    def show(self, post: Node, ratio: float = 1.0) -> None:
        self.document.set_visible_ratio(post, ratio)


async def settle(ticks: int = 5) -> None:
    """Let call_soon deliveries run."""
    for _ in range(ticks):
        await asyncio.sleep(0)


def editor_of(post: Node) -> Node | None:
    return next((node for node in post.iter_descendants() if node.is_editable), None)


def owned_classes(root: Node) -> list[str]:
    return [node.class_name for node in root.iter_descendants() if node.class_name.startswith("quipli-")]


