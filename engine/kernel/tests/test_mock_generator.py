"""Tests for MockGenerator: scripted replies with configurable delays."""

from __future__ import annotations

import asyncio
import time

import pytest

from engine.kernel.errors import ErrorKind, RateLimitError
from engine.kernel.mock_llm import DEFAULT_REPLY, MockGenerator
from engine.kernel.types import Comment, Failure, SettingsSnapshot

SNAPSHOT = SettingsSnapshot(provider="claude", model="m", credential="k")


@pytest.mark.asyncio
async def test_scripted_replies_in_order_then_default():
    generator = MockGenerator(["one", "two"])
    results = [await generator.generate_comment("post", SNAPSHOT) for _ in range(3)]
    assert results == [Comment("one"), Comment("two"), Comment(DEFAULT_REPLY)]
    assert [call[0] for call in generator.calls] == ["post"] * 3


@pytest.mark.asyncio
async def test_scripted_error_becomes_failure():
    generator = MockGenerator([RateLimitError()])
    result = await generator.generate_comment("post", SNAPSHOT)
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.RATE_LIMIT
    assert result.message == "Rate limit exceeded - please wait a moment and try again"


def test_unknown_profile_rejected():
    with pytest.raises(ValueError, match="Unknown delay profile"):
        MockGenerator(profile="glacial")


@pytest.mark.asyncio
async def test_instant_profile_no_delay():
    generator = MockGenerator()
    start = time.perf_counter()
    for _ in range(20):
        await generator.generate_comment("post", SNAPSHOT)
    elapsed_ms = (time.perf_counter() - start) * 1000
    # Allow 200ms for slow CI runners; the key is no asyncio.sleep()
    assert elapsed_ms < 200


@pytest.mark.asyncio
async def test_hold_blocks_until_release_and_counts_concurrency():
    generator = MockGenerator()
    generator.hold()
    tasks = [asyncio.create_task(generator.generate_comment("post", SNAPSHOT)) for _ in range(3)]
    await asyncio.sleep(0)
    assert generator.active == 3
    assert not any(task.done() for task in tasks)

    generator.release()
    await asyncio.gather(*tasks)
    assert generator.active == 0
    assert generator.max_active == 3
