"""Tests for the Visibility Gate: threshold and one-shot readiness."""

from __future__ import annotations

import pytest

from engine.kernel.tests.helpers import settle
from engine.kernel.types import LifecycleState


@pytest.mark.asyncio
async def test_item_below_threshold_is_not_processed(engine, feed, generator):
    post = feed.add_post(visible=0.2)
    engine.start()
    await settle()
    assert engine.state_of(post) is LifecycleState.DISCOVERED
    assert generator.calls == []
    engine.stop()


@pytest.mark.asyncio
async def test_item_becomes_ready_once_visible(engine, feed, generator):
    post = feed.add_post()
    engine.start()
    await settle()
    feed.show(post, 0.3)
    await engine.wait_idle()
    assert engine.state_of(post) is LifecycleState.PREVIEW
    assert len(generator.calls) == 1
    engine.stop()


@pytest.mark.asyncio
async def test_readiness_fires_only_once(engine, feed, generator):
    post = feed.add_post(visible=1.0)
    engine.start()
    await engine.wait_idle()

    feed.show(post, 0.0)
    feed.show(post, 1.0)
    await engine.wait_idle()

    record = engine.record_for(post)
    assert engine.ctx.registry.is_processed(record.handle)
    assert not engine.ctx.gate.register(record)
    assert len(generator.calls) == 1
    engine.stop()


@pytest.mark.asyncio
async def test_processed_item_survives_rediscovery(engine, feed, generator):
    post = feed.add_post(visible=1.0)
    engine.start()
    await engine.wait_idle()
    assert engine.ctx.watcher.discover() == 0
    await engine.wait_idle()
    assert engine.state_of(post) is LifecycleState.PREVIEW
    assert len(generator.calls) == 1
    engine.stop()
