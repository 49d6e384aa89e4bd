"""Tests for QuipliApp wiring: settings changes drive the engine."""

from __future__ import annotations

import httpx
import pytest

from engine.kernel.dom import Document, Node
from engine.kernel.mock_llm import MockGenerator
from engine.kernel.types import EngineTimings, LifecycleState
from quipli.config import SettingsStore
from quipli.main import QuipliApp
from quipli.services.ai_provider import GenerationClient
from quipli.services.key_validator import KeyStatus

FAST = EngineTimings(debounce=0.01, error_clear=0.05, editor_timeout=0.1, focus_settle=0)


def add_post(document: Document) -> Node:
    post = document.body.append(Node("div", attrs={"data-urn": "urn:li:activity:7"}))
    post.append(
        Node(
            "div",
            class_name="update-components-text",
            children=[Node.text_node("Our quarterly review turned into a great retro session.")],
        )
    )
    post.append(Node("div", class_name="feed-shared-social-action-bar"))
    document.set_visible_ratio(post, 1.0)
    return post


@pytest.mark.asyncio
async def test_disabled_app_does_not_start():
    app = QuipliApp(Document(), SettingsStore(), MockGenerator(), timings=FAST)
    app.start()
    assert not app.engine.active
    await app.aclose()


@pytest.mark.asyncio
async def test_enabling_through_store_starts_engine():
    document = Document()
    post = add_post(document)
    store = SettingsStore()
    store.set("credential", "sk-test")
    generator = MockGenerator(["Sounds like a productive quarter."])
    app = QuipliApp(document, store, generator, timings=FAST)
    app.start()

    store.set("enabled", True)
    await app.engine.wait_idle()

    assert app.engine.state_of(post) is LifecycleState.PREVIEW
    assert generator.calls[0][1].credential == "sk-test"

    store.set("enabled", False)
    assert not app.engine.active
    await app.aclose()


@pytest.mark.asyncio
async def test_store_changes_reach_engine_snapshot():
    store = SettingsStore()
    app = QuipliApp(Document(), store, MockGenerator(), timings=FAST)
    store.set("tone", "witty")
    assert app.engine.settings.tone == "witty"

    await app.aclose()
    store.set("tone", "dry")
    assert app.engine.settings.tone == "witty"


@pytest.mark.asyncio
async def test_credential_edit_schedules_validation():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(401, json={"error": {"message": "invalid"}})

    client = GenerationClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)), timeout=5)
    store = SettingsStore()
    app = QuipliApp(Document(), store, client, timings=FAST)
    app.key_validator.delay = 0.01

    store.set("credential", "sk-bad")
    assert app.key_validator.status is KeyStatus.PENDING
    await app.key_validator.wait()

    assert app.key_validator.status is KeyStatus.INVALID
    assert app.key_validator.message == "Invalid API key for Claude"
    assert len(requests) == 1
    await app.aclose()
    await client.http_client.aclose()


@pytest.mark.asyncio
async def test_first_start_writes_settings_file(tmp_path):
    path = tmp_path / "settings.json"
    app = QuipliApp(Document(), SettingsStore(path), MockGenerator(), timings=FAST)
    app.start()
    assert path.exists()
    await app.aclose()
