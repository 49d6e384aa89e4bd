"""
Quipli Kernel: Selector Strategies

Each target kind has an ordered list of named structural strategies.
Update the tables here when the host changes its markup.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from engine.kernel.dom import Node


class TargetKind(str, Enum):
    CONTENT_ITEM = "content_item"
    ITEM_TEXT = "item_text"
    UI_ANCHOR = "ui_anchor"
    REVEAL_ACTION = "reveal_action"
    EDITABLE_SURFACE = "editable_surface"


@dataclass(frozen=True)
class Strategy:
    name: str
    matches: Callable[[Node], bool]


# ---------------------------------------------------------------------------
# Predicate builders
# ---------------------------------------------------------------------------


def has_class(name: str, *, tag: str | None = None) -> Callable[[Node], bool]:
    def match(node: Node) -> bool:
        return (tag is None or node.tag == tag) and node.has_class(name)

    return match


def attr_contains(attr: str, fragment: str, *, tag: str | None = None) -> Callable[[Node], bool]:
    def match(node: Node) -> bool:
        value = node.get_attr(attr)
        return (tag is None or node.tag == tag) and value is not None and fragment in value

    return match


def attr_equals(attr: str, expected: str | None = None, *, tag: str | None = None) -> Callable[[Node], bool]:
    """Match on attribute presence, or on an exact value when ``expected`` is given."""

    def match(node: Node) -> bool:
        value = node.get_attr(attr)
        if tag is not None and node.tag != tag:
            return False
        if expected is None:
            return value is not None
        return value == expected

    return match


def all_of(*predicates: Callable[[Node], bool]) -> Callable[[Node], bool]:
    def match(node: Node) -> bool:
        return all(predicate(node) for predicate in predicates)

    return match


# ---------------------------------------------------------------------------
# Strategy tables
# ---------------------------------------------------------------------------

STRATEGIES: dict[TargetKind, tuple[Strategy, ...]] = {
    TargetKind.CONTENT_ITEM: (
        Strategy("activity-urn", attr_contains("data-urn", "urn:li:activity")),
        Strategy("update-v2", has_class("feed-shared-update-v2")),
        Strategy("data-id", attr_equals("data-id", tag="div")),
    ),
    TargetKind.ITEM_TEXT: (
        Strategy("update-description", has_class("feed-shared-update-v2__description")),
        Strategy("components-text", has_class("update-components-text")),
        Strategy("shared-text", has_class("feed-shared-text")),
        Strategy("show-more-text", has_class("feed-shared-inline-show-more-text")),
        Strategy("ltr-span", attr_equals("dir", "ltr", tag="span")),
    ),
    TargetKind.REVEAL_ACTION: (
        Strategy("aria-Comment", attr_contains("aria-label", "Comment", tag="button")),
        Strategy("aria-comment", attr_contains("aria-label", "comment", tag="button")),
        Strategy("aria-commentaire", attr_contains("aria-label", "commentaire", tag="button")),
        Strategy("comment-button", has_class("comment-button", tag="button")),
    ),
    TargetKind.EDITABLE_SURFACE: (
        Strategy("ql-editor", all_of(has_class("ql-editor"), attr_equals("contenteditable", "true"))),
        Strategy(
            "editable-textbox",
            all_of(attr_equals("contenteditable", "true"), attr_equals("role", "textbox")),
        ),
        Strategy("editable-div", attr_equals("contenteditable", "true", tag="div")),
    ),
    TargetKind.UI_ANCHOR: (
        Strategy("social-action-bar", has_class("feed-shared-social-action-bar")),
        Strategy("social-details-actions", has_class("social-details-social-actions")),
        Strategy("social-actions", has_class("feed-shared-social-actions")),
    ),
}


def query(root: Node, kind: TargetKind, strategies: dict[TargetKind, tuple[Strategy, ...]] | None = None) -> Node | None:
    """First strategy with any match wins; returns its first match in document order."""
    for strategy in (strategies or STRATEGIES)[kind]:
        for node in root.iter_descendants():
            if node.is_element and strategy.matches(node):
                return node
    return None


def query_all(
    root: Node, kind: TargetKind, strategies: dict[TargetKind, tuple[Strategy, ...]] | None = None
) -> list[Node]:
    """Union of every strategy's matches, deduplicated by identity."""
    seen: set[int] = set()
    result: list[Node] = []
    for strategy in (strategies or STRATEGIES)[kind]:
        for node in root.iter_descendants():
            if node.is_element and id(node) not in seen and strategy.matches(node):
                seen.add(id(node))
                result.append(node)
    return result


def extract_text(item: Node, strategies: dict[TargetKind, tuple[Strategy, ...]] | None = None) -> str:
    text_node = query(item, TargetKind.ITEM_TEXT, strategies)
    return text_node.inner_text.strip() if text_node is not None else ""
