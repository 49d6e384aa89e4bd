"""
Provider and model catalog.

The first model listed for a provider is its default when the provider
changes and the current model does not belong to it.
"""

from __future__ import annotations

from typing import NamedTuple


class ModelOption(NamedTuple):
    value: str
    label: str


PROVIDER_LABELS: dict[str, str] = {
    "claude": "Claude",
    "openai": "OpenAI",
    "gemini": "Gemini",
}

MODELS: dict[str, list[ModelOption]] = {
    "claude": [
        ModelOption("claude-opus-4-6", "Claude Opus 4.6"),
        ModelOption("claude-sonnet-4-5-20250929", "Claude Sonnet 4.5"),
        ModelOption("claude-haiku-4-5-20251001", "Claude Haiku 4.5"),
        ModelOption("claude-opus-4-5-20251101", "Claude Opus 4.5"),
        ModelOption("claude-sonnet-4-20250514", "Claude Sonnet 4"),
    ],
    "openai": [
        ModelOption("gpt-5.2", "GPT-5.2"),
        ModelOption("gpt-5", "GPT-5"),
        ModelOption("gpt-5-mini", "GPT-5 Mini"),
        ModelOption("gpt-4.1", "GPT-4.1"),
        ModelOption("gpt-4.1-mini", "GPT-4.1 Mini"),
        ModelOption("gpt-4.1-nano", "GPT-4.1 Nano"),
        ModelOption("gpt-4o", "GPT-4o"),
        ModelOption("gpt-4o-mini", "GPT-4o Mini"),
    ],
    "gemini": [
        ModelOption("gemini-3-pro-preview", "Gemini 3 Pro (Preview)"),
        ModelOption("gemini-3-flash-preview", "Gemini 3 Flash (Preview)"),
        ModelOption("gemini-2.5-pro", "Gemini 2.5 Pro"),
        ModelOption("gemini-2.5-flash", "Gemini 2.5 Flash"),
        ModelOption("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite"),
    ],
}

DEFAULT_PROVIDER = "claude"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


def is_known_provider(provider: str | None) -> bool:
    return provider in MODELS


def provider_label(provider: str) -> str:
    return PROVIDER_LABELS.get(provider, provider)


def models_for(provider: str) -> list[ModelOption]:
    """Models offered for ``provider``; empty for an unknown provider."""
    return list(MODELS.get(provider, []))


def default_model(provider: str) -> str | None:
    models = MODELS.get(provider)
    return models[0].value if models else None


def has_model(provider: str, model: str | None) -> bool:
    return any(option.value == model for option in MODELS.get(provider, []))
