"""Tests for the item arena."""

from __future__ import annotations

import asyncio

import pytest

from engine.kernel.dom import Document, Node
from engine.kernel.registry import ItemRegistry


def test_register_is_idempotent_per_node():
    registry = ItemRegistry()
    node = Node("div")
    first, created = registry.register(node)
    again, created_again = registry.register(node)
    assert created and not created_again
    assert first is again
    assert len(registry) == 1


def test_handles_are_unique():
    registry = ItemRegistry()
    a, _ = registry.register(Node("div"))
    b, _ = registry.register(Node("div"))
    assert a.handle != b.handle


def test_mark_processed_only_once():
    registry = ItemRegistry()
    record, _ = registry.register(Node("div"))
    assert registry.mark_processed(record.handle)
    assert not registry.mark_processed(record.handle)
    assert registry.is_processed(record.handle)


def test_sweep_removes_only_detached_records():
    doc = Document()
    kept = doc.body.append(Node("div"))
    gone = doc.body.append(Node("div"))
    registry = ItemRegistry()
    kept_record, _ = registry.register(kept)
    gone_record, _ = registry.register(gone)
    registry.mark_processed(gone_record.handle)

    gone.remove()
    removed = registry.sweep_detached()

    assert removed == [gone_record]
    assert registry.get(gone_record.handle) is None
    assert registry.lookup(gone) is None
    assert not registry.is_processed(gone_record.handle)
    assert registry.get(kept_record.handle) is kept_record


def test_reattached_node_after_removal_is_a_new_item():
    registry = ItemRegistry()
    node = Node("div")
    first, _ = registry.register(node)
    registry.remove(first.handle)
    second, created = registry.register(node)
    assert created
    assert second.handle != first.handle


@pytest.mark.asyncio
async def test_remove_cancels_pending_timers():
    registry = ItemRegistry()
    record, _ = registry.register(Node("div"))
    fired = []
    record.timers.append(asyncio.get_running_loop().call_later(0.01, fired.append, True))
    registry.remove(record.handle)
    await asyncio.sleep(0.03)
    assert fired == []
    assert record.timers == []


def test_remove_unknown_handle_is_noop():
    assert ItemRegistry().remove(42) is None
