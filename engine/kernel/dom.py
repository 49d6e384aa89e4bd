"""
Quipli Kernel: Document Model

A small in-process model of the host's content tree. It carries just
enough of the browser surface for the engine to work against:

  Node, Document:       tree structure, events, focus, editing commands
  MutationObserver:     batched child-list records, delivered next tick
  IntersectionObserver: visibility ratios reported by the host

Deliveries go through the running event loop (``loop.call_soon``) so that
every observer callback runs as its own step of the single consumer loop.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from engine.kernel.errors import DomError

TEXT_TAG = "#text"


def _call_soon(callback: Callable[[], None]) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No loop (plain synchronous use): deliver immediately.
        callback()
        return
    loop.call_soon(callback)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class Event:
    type: str
    data: str | None = None
    input_type: str | None = None
    bubbles: bool = True
    target: Node | None = None
    current_target: Node | None = None


EventListener = Callable[[Event], Any]


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class Node:
    """An element or text node. Identity is object identity."""

    def __init__(
        self,
        tag: str = "div",
        *,
        class_name: str = "",
        attrs: dict[str, str] | None = None,
        text: str = "",
        children: Iterable[Node] = (),
    ) -> None:
        self.tag = tag
        self.class_name = class_name
        self.attrs: dict[str, str] = dict(attrs or {})
        self.text = text
        self.parent: Node | None = None
        self.children: list[Node] = []
        self._listeners: dict[str, list[EventListener]] = {}
        for child in children:
            self.append(child)

    @classmethod
    def text_node(cls, text: str) -> Node:
        return cls(TEXT_TAG, text=text)

    def __repr__(self) -> str:
        if self.tag == TEXT_TAG:
            return f"<#text {self.text[:20]!r}>"
        cls = f" class={self.class_name!r}" if self.class_name else ""
        return f"<{self.tag}{cls}>"

    # -- attributes ---------------------------------------------------------

    @property
    def is_element(self) -> bool:
        return self.tag != TEXT_TAG

    def has_class(self, name: str) -> bool:
        return name in self.class_name.split()

    def get_attr(self, name: str) -> str | None:
        return self.attrs.get(name)

    @property
    def is_editable(self) -> bool:
        return self.attrs.get("contenteditable") == "true"

    # -- position -----------------------------------------------------------

    @property
    def root(self) -> Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def document(self) -> Document | None:
        root = self.root
        return root if isinstance(root, Document) else None

    @property
    def is_connected(self) -> bool:
        return self.document is not None

    def contains(self, other: Node | None) -> bool:
        node = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def iter_descendants(self) -> Iterator[Node]:
        """Depth-first, document order, excluding self."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def inner_text(self) -> str:
        if self.tag == TEXT_TAG:
            return self.text
        return "".join(child.inner_text for child in self.children)

    # -- structure ----------------------------------------------------------

    def append(self, child: Node) -> Node:
        return self._insert(len(self.children), child)

    def insert_after(self, reference: Node, node: Node) -> Node:
        if reference.parent is not self:
            raise DomError("reference node is not a child of this node")
        return self._insert(self.children.index(reference) + 1, node)

    def insert_adjacent_after(self, node: Node) -> Node:
        """Insert ``node`` as the next sibling of this node."""
        if self.parent is None:
            raise DomError("cannot insert next to a node without a parent")
        return self.parent.insert_after(self, node)

    def remove(self) -> None:
        parent = self.parent
        if parent is None:
            return
        document = parent.document
        parent.children.remove(self)
        self.parent = None
        if document is not None:
            document._record(parent, removed=(self,))

    def replace_children(self, *nodes: Node) -> None:
        for node in nodes:
            if node is self or node.contains(self):
                raise DomError("cannot insert a node into itself")
        removed = tuple(self.children)
        for child in removed:
            child.parent = None
        self.children = []
        for node in nodes:
            if node.parent is not None:
                node.remove()
            node.parent = self
            self.children.append(node)
        document = self.document
        if document is not None:
            document._record(self, added=nodes, removed=removed)

    def _insert(self, index: int, child: Node) -> Node:
        if child is self or child.contains(self):
            raise DomError("cannot insert a node into itself")
        if child.parent is not None:
            child.remove()
        child.parent = self
        self.children.insert(index, child)
        document = self.document
        if document is not None:
            document._record(self, added=(child,))
        return child

    # -- events -------------------------------------------------------------

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event: Event) -> None:
        event.target = self
        node: Node | None = self
        while node is not None:
            event.current_target = node
            for listener in list(node._listeners.get(event.type, ())):
                listener(event)
            if not event.bubbles:
                break
            node = node.parent

    def click(self) -> None:
        self.dispatch_event(Event("click"))

    def focus(self) -> None:
        document = self.document
        if document is None:
            raise DomError("cannot focus a detached node")
        document.active_element = self
        self.dispatch_event(Event("focus", bubbles=False))


class Document(Node):
    """Root of the observed tree."""

    def __init__(self, *, supported_commands: Iterable[str] = ("selectAll", "insertText")) -> None:
        self.active_element: Node | None = None
        self.supported_commands: set[str] = set(supported_commands)
        self._mutation_observers: list[MutationObserver] = []
        self._intersection_observers: list[IntersectionObserver] = []
        self._visible: weakref.WeakKeyDictionary[Node, float] = weakref.WeakKeyDictionary()
        self._selection: Node | None = None
        super().__init__("#document")
        self.body = self.append(Node("body"))

    def _record(self, target: Node, *, added: Iterable[Node] = (), removed: Iterable[Node] = ()) -> None:
        record = MutationRecord(target=target, added_nodes=tuple(added), removed_nodes=tuple(removed))
        for observer in list(self._mutation_observers):
            observer._enqueue(record)

    # -- editing commands ---------------------------------------------------

    def exec_command(self, command: str, value: str | None = None) -> bool:
        """
        Run an editing command against the focused element.

        Returns False when the host does not support the command or there
        is no focused editable element, mirroring ``document.execCommand``.
        """
        if command not in self.supported_commands:
            return False
        element = self.active_element
        if element is None or not element.is_connected or not element.is_editable:
            return False
        if command == "selectAll":
            self._selection = element
            return True
        if command == "insertText":
            text_node = Node.text_node(value or "")
            if self._selection is element:
                element.replace_children(text_node)
            else:
                element.append(text_node)
            self._selection = None
            element.dispatch_event(Event("input", data=value, input_type="insertText"))
            return True
        return False

    # -- viewport -----------------------------------------------------------

    def set_visible_ratio(self, node: Node, ratio: float) -> None:
        """Host hook: report how much of ``node`` is inside the viewport."""
        self._visible[node] = ratio
        for observer in list(self._intersection_observers):
            observer._notify(node, ratio)

    def visible_ratio(self, node: Node) -> float:
        return self._visible.get(node, 0.0)


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MutationRecord:
    target: Node
    added_nodes: tuple[Node, ...] = ()
    removed_nodes: tuple[Node, ...] = ()


class MutationObserver:
    """Subtree child-list observer; one callback per batch of records."""

    def __init__(self, callback: Callable[[list[MutationRecord]], Any]) -> None:
        self._callback = callback
        self._roots: list[Node] = []
        self._pending: list[MutationRecord] = []
        self._scheduled = False
        self._document: Document | None = None

    def observe(self, root: Node) -> None:
        document = root.document
        if document is None:
            raise DomError("cannot observe a detached node")
        if self._document is not None and self._document is not document:
            raise DomError("observer is already bound to another document")
        self._roots.append(root)
        self._document = document
        if self not in document._mutation_observers:
            document._mutation_observers.append(self)

    def disconnect(self) -> None:
        if self._document is not None and self in self._document._mutation_observers:
            self._document._mutation_observers.remove(self)
        self._document = None
        self._roots.clear()
        self._pending.clear()

    def take_records(self) -> list[MutationRecord]:
        records, self._pending = self._pending, []
        return records

    def _enqueue(self, record: MutationRecord) -> None:
        if not any(root.contains(record.target) for root in self._roots):
            return
        self._pending.append(record)
        if not self._scheduled:
            self._scheduled = True
            _call_soon(self._flush)

    def _flush(self) -> None:
        self._scheduled = False
        records = self.take_records()
        if records and self._document is not None:
            self._callback(records)


@dataclass(frozen=True)
class IntersectionEntry:
    target: Node
    ratio: float
    is_intersecting: bool


class IntersectionObserver:
    """Reports visibility of observed nodes against a threshold."""

    def __init__(
        self,
        document: Document,
        callback: Callable[[list[IntersectionEntry]], Any],
        *,
        threshold: float,
    ) -> None:
        self.document = document
        self.threshold = threshold
        self._callback = callback
        self._targets: dict[Node, None] = {}

    def observe(self, node: Node) -> None:
        if node in self._targets:
            return
        self._targets[node] = None
        if self not in self.document._intersection_observers:
            self.document._intersection_observers.append(self)
        # Browsers report the current state once right after observe().
        _call_soon(lambda: self._deliver(node, self.document.visible_ratio(node)))

    def unobserve(self, node: Node) -> None:
        self._targets.pop(node, None)

    def disconnect(self) -> None:
        self._targets.clear()
        if self in self.document._intersection_observers:
            self.document._intersection_observers.remove(self)

    def observing(self, node: Node) -> bool:
        return node in self._targets

    def _notify(self, node: Node, ratio: float) -> None:
        if node in self._targets:
            _call_soon(lambda: self._deliver(node, ratio))

    def _deliver(self, node: Node, ratio: float) -> None:
        if node not in self._targets:
            return
        entry = IntersectionEntry(
            target=node,
            ratio=ratio,
            is_intersecting=ratio > 0 and ratio >= self.threshold,
        )
        self._callback([entry])
