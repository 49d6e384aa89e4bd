"""Tests for the Document Watcher: discovery, debounce, self-mutation filter."""

from __future__ import annotations

import asyncio

import pytest

from engine.kernel.dom import MutationRecord, Node
from engine.kernel.tests.helpers import FAST, settle
from engine.kernel.types import LifecycleState
from engine.kernel.watcher import is_own_mutation


def test_own_mutation_detection():
    own = Node("div", class_name="quipli-loader")
    host = Node("div", class_name="feed-item")
    target = Node("div")
    assert is_own_mutation([MutationRecord(target, added_nodes=(own,))], "quipli-")
    assert not is_own_mutation([MutationRecord(target, added_nodes=(own, host))], "quipli-")
    assert not is_own_mutation([MutationRecord(target, added_nodes=(Node.text_node("x"),))], "quipli-")
    # Nothing added at all counts as own.
    assert is_own_mutation([MutationRecord(target, removed_nodes=(host,))], "quipli-")


@pytest.mark.asyncio
async def test_activation_discovers_existing_items(engine, feed):
    posts = [feed.add_post(), feed.add_post()]
    engine.start()
    assert [engine.state_of(post) for post in posts] == [LifecycleState.DISCOVERED] * 2
    assert engine.ctx.watcher.discovery_passes == 1
    engine.stop()


@pytest.mark.asyncio
async def test_activating_twice_is_noop(engine, feed):
    feed.add_post()
    engine.ctx.active = True
    engine.ctx.watcher.activate()
    engine.ctx.watcher.activate()
    assert engine.ctx.watcher.discovery_passes == 1
    engine.stop()


@pytest.mark.asyncio
async def test_rediscovery_is_debounced(engine, feed):
    engine.start()
    first = feed.add_post()
    await settle()
    second = feed.add_post()
    await settle()

    watcher = engine.ctx.watcher
    assert watcher.pending_rediscovery
    assert watcher.discovery_passes == 1
    assert engine.record_for(first) is None

    await asyncio.sleep(FAST.debounce * 5)
    assert watcher.discovery_passes == 2
    assert engine.state_of(first) is LifecycleState.DISCOVERED
    assert engine.state_of(second) is LifecycleState.DISCOVERED
    engine.stop()


@pytest.mark.asyncio
async def test_own_ui_insertions_do_not_schedule_rediscovery(engine, feed):
    post = feed.add_post()
    engine.start()
    post.append(Node("div", class_name="quipli-loader"))
    await settle()
    assert not engine.ctx.watcher.pending_rediscovery
    engine.stop()


@pytest.mark.asyncio
async def test_detached_items_are_removed_from_arena(engine, feed):
    post = feed.add_post()
    engine.start()
    record = engine.record_for(post)
    assert record is not None

    post.remove()
    await settle()

    assert engine.record_for(post) is None
    assert engine.ctx.registry.get(record.handle) is None
    assert not engine.ctx.gate._observer.observing(post)
    engine.stop()


@pytest.mark.asyncio
async def test_no_discovery_after_deactivate(engine, feed):
    engine.start()
    post = feed.add_post()
    await settle()
    engine.stop()
    await asyncio.sleep(FAST.debounce * 5)
    assert engine.record_for(post) is None
    assert not engine.ctx.watcher.pending_rediscovery
