"""Tests for the settings store: defaults, validation, persistence, notifications."""

from __future__ import annotations

import json
import stat

import pytest
from pydantic import ValidationError

from engine.kernel.types import SettingsSnapshot
from quipli.config import SettingsStore, redact


def test_defaults():
    store = SettingsStore()
    assert store.snapshot() == SettingsSnapshot(
        provider="claude",
        model="claude-sonnet-4-5-20250929",
        credential=None,
        tone="professional",
        enabled=False,
        system_prompt_override=None,
    )


def test_listeners_receive_only_changed_keys():
    store = SettingsStore()
    received = []
    store.subscribe(received.append)

    store.update(tone="professional", enabled=True)
    store.update(enabled=True)

    assert received == [{"enabled": True}]


def test_unsubscribe_stops_notifications():
    store = SettingsStore()
    received = []
    unsubscribe = store.subscribe(received.append)
    unsubscribe()
    store.set("tone", "friendly")
    assert received == []


def test_switching_provider_resets_foreign_model():
    store = SettingsStore()
    changed = store.set("provider", "gemini")
    assert changed == {"provider": "gemini", "model": "gemini-3-pro-preview"}


def test_switching_provider_with_explicit_model_keeps_it():
    store = SettingsStore()
    store.update(provider="openai", model="gpt-4o")
    assert store.get("model") == "gpt-4o"


def test_unknown_provider_rejected():
    store = SettingsStore()
    with pytest.raises(ValidationError):
        store.set("provider", "mistral")
    assert store.get("provider") == "claude"


def test_unknown_key_rejected():
    with pytest.raises(KeyError):
        SettingsStore().set("colour", "blue")


def test_blank_values_normalised():
    store = SettingsStore()
    store.update(tone="   ", credential="  ", system_prompt_override="")
    snapshot = store.snapshot()
    assert snapshot.tone == "professional"
    assert snapshot.credential is None
    assert snapshot.system_prompt_override is None


def test_string_booleans_accepted():
    store = SettingsStore()
    store.set("enabled", "true")
    assert store.get("enabled") is True


def test_persists_with_owner_only_permissions(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = SettingsStore(path)
    store.update(provider="openai", credential="sk-secret-9876", enabled=True)

    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    data = json.loads(path.read_text())
    assert data["provider"] == "openai"
    assert data["model"] == "gpt-5.2"

    reloaded = SettingsStore(path)
    assert reloaded.snapshot() == store.snapshot()


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert SettingsStore(path).get("provider") == "claude"


def test_persist_defaults_writes_first_run_file(tmp_path):
    path = tmp_path / "settings.json"
    SettingsStore(path).persist_defaults()
    assert json.loads(path.read_text())["tone"] == "professional"


def test_redact_keeps_last_four():
    assert redact("sk-ant-abcdefgh1234") == "***1234"
    assert redact(None) == "(none)"
