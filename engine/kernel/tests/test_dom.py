"""Tests for the document model: structure, observers, editing commands."""

from __future__ import annotations

import pytest

from engine.kernel.dom import Document, Event, IntersectionObserver, MutationObserver, Node
from engine.kernel.errors import DomError
from engine.kernel.tests.helpers import settle

# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


def test_append_and_remove_track_connection():
    doc = Document()
    child = doc.body.append(Node("div"))
    assert child.is_connected
    assert child.document is doc

    child.remove()
    assert not child.is_connected
    assert child.parent is None


def test_inner_text_concatenates_text_nodes_in_order():
    node = Node("p", children=[Node.text_node("Hello "), Node("b", children=[Node.text_node("world")])])
    assert node.inner_text == "Hello world"


def test_insert_adjacent_after_places_next_sibling():
    doc = Document()
    first = doc.body.append(Node("div", class_name="a"))
    doc.body.append(Node("div", class_name="c"))
    first.insert_adjacent_after(Node("div", class_name="b"))
    assert [child.class_name for child in doc.body.children] == ["a", "b", "c"]


def test_insert_into_self_is_rejected():
    parent = Node("div")
    child = parent.append(Node("div"))
    with pytest.raises(DomError):
        child.append(parent)


def test_events_bubble_to_ancestors():
    outer = Node("div")
    inner = outer.append(Node("button"))
    seen = []
    outer.add_event_listener("click", lambda event: seen.append((event.target, event.current_target)))
    inner.click()
    assert seen == [(inner, outer)]


def test_focus_on_detached_node_raises():
    with pytest.raises(DomError):
        Node("div").focus()


# ---------------------------------------------------------------------------
# MutationObserver
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_mutations_in_one_tick_arrive_as_one_batch():
    doc = Document()
    batches = []
    observer = MutationObserver(batches.append)
    observer.observe(doc.body)

    doc.body.append(Node("div"))
    doc.body.append(Node("div"))
    assert batches == []

    await settle()
    assert len(batches) == 1
    assert len(batches[0]) == 2


@pytest.mark.asyncio
async def test_disconnected_observer_receives_nothing():
    doc = Document()
    batches = []
    observer = MutationObserver(batches.append)
    observer.observe(doc.body)
    doc.body.append(Node("div"))
    observer.disconnect()
    await settle()
    assert batches == []


@pytest.mark.asyncio
async def test_mutations_outside_observed_subtree_are_ignored():
    doc = Document()
    watched = doc.body.append(Node("section"))
    other = doc.body.append(Node("aside"))
    batches = []
    MutationObserver(batches.append).observe(watched)
    other.append(Node("div"))
    await settle()
    assert batches == []


def test_observing_detached_node_raises():
    with pytest.raises(DomError):
        MutationObserver(lambda records: None).observe(Node("div"))


# ---------------------------------------------------------------------------
# IntersectionObserver
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_intersection_respects_threshold():
    doc = Document()
    node = doc.body.append(Node("div"))
    entries = []
    observer = IntersectionObserver(doc, entries.extend, threshold=0.3)
    observer.observe(node)
    await settle()
    assert [entry.is_intersecting for entry in entries] == [False]

    doc.set_visible_ratio(node, 0.29)
    doc.set_visible_ratio(node, 0.3)
    await settle()
    assert [entry.is_intersecting for entry in entries] == [False, False, True]


@pytest.mark.asyncio
async def test_unobserved_node_gets_no_entries():
    doc = Document()
    node = doc.body.append(Node("div"))
    entries = []
    observer = IntersectionObserver(doc, entries.extend, threshold=0.3)
    observer.observe(node)
    observer.unobserve(node)
    doc.set_visible_ratio(node, 1.0)
    await settle()
    assert entries == []


# ---------------------------------------------------------------------------
# Editing commands
# ---------------------------------------------------------------------------


def test_insert_text_replaces_selection_and_fires_input():
    doc = Document()
    editor = doc.body.append(Node("div", attrs={"contenteditable": "true"}, children=[Node.text_node("old")]))
    inputs: list[Event] = []
    editor.add_event_listener("input", inputs.append)
    editor.focus()

    assert doc.exec_command("selectAll")
    assert doc.exec_command("insertText", "new text")
    assert editor.inner_text == "new text"
    assert inputs[0].data == "new text"
    assert inputs[0].input_type == "insertText"


def test_exec_command_fails_without_support_or_focus():
    doc = Document(supported_commands=())
    editor = doc.body.append(Node("div", attrs={"contenteditable": "true"}))
    editor.focus()
    assert not doc.exec_command("insertText", "x")

    doc = Document()
    doc.body.append(Node("div", attrs={"contenteditable": "true"}))
    assert not doc.exec_command("insertText", "x")
