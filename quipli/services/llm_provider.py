"""
Generator factory.

Returns MockGenerator when QUIPLI_USE_MOCK_LLM=true (tests / UX simulation)
or the real GenerationClient otherwise.
"""

from __future__ import annotations

from engine.kernel.mock_llm import MockGenerator
from quipli import config
from quipli.services.ai_provider import GenerationClient


def get_generator() -> MockGenerator | GenerationClient:
    """
    Return the configured generator.

    - QUIPLI_USE_MOCK_LLM=true  → MockGenerator (deterministic, no API calls)
    - default                   → GenerationClient (real backends)
    """
    if config.settings.USE_MOCK_LLM:
        return MockGenerator()
    return GenerationClient()
