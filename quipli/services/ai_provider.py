"""Generation client: one interface over the Claude, OpenAI and Gemini backends."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from engine.kernel.errors import ConfigurationError, ContentTooShortError, QuipliError
from engine.kernel.types import (
    MIN_TEXT_LENGTH,
    Comment,
    Failure,
    GenerationRequest,
    GenerationResult,
    SettingsSnapshot,
)
from quipli import config
from quipli.config import redact
from quipli.models.settings import ProbeResult
from quipli.services.anthropic_client import AnthropicClient
from quipli.services.gemini_client import GeminiClient
from quipli.services.openai_client import OpenAIClient
from quipli.services.prompt_builder import (
    PROBE_SYSTEM_PROMPT,
    PROBE_USER_TEXT,
    build_system_prompt,
    truncate_post,
)

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Missing provider, model, or API key"
UNEXPECTED_ERROR = "An unexpected error occurred"


class Backend(Protocol):
    async def complete(self, request: GenerationRequest) -> str: ...


class GenerationClient:
    """
    Unified interface for the generation backends.

    All backends share one httpx.AsyncClient. Pass ``http_client`` to
    supply your own (tests use an httpx.MockTransport); the client is then
    left open by ``aclose()``.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None, timeout: float | None = None) -> None:
        self.timeout = timeout if timeout is not None else config.settings.REQUEST_TIMEOUT
        self._owns_http = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.timeout)
        self.backends: dict[str, Backend] = {
            "claude": AnthropicClient(self.http_client, self.timeout),
            "openai": OpenAIClient(self.http_client, self.timeout),
            "gemini": GeminiClient(self.http_client, self.timeout),
        }

    async def generate(self, request: GenerationRequest) -> str:
        """
        Send one request to the backend named by ``request.provider``.

        Raises:
            ConfigurationError: unknown provider
            NetworkError, AuthError, RateLimitError, ProviderHttpError,
            ProviderFormatError: from the backend
        """
        backend = self.backends.get(request.provider)
        if backend is None:
            raise ConfigurationError(f"Unknown provider: {request.provider}")
        logger.info(
            "generation: calling %s/%s with %d chars (key %s)",
            request.provider,
            request.model,
            len(request.user_text),
            redact(request.credential),
        )
        return await backend.complete(request)

    async def generate_comment(self, post_text: str, settings: SettingsSnapshot) -> GenerationResult:
        """Build the request from ``settings`` and return a Comment or a Failure."""
        try:
            if not (settings.provider and settings.model and settings.credential):
                raise ConfigurationError()
            if settings.provider not in self.backends:
                raise ConfigurationError(f"Unknown provider: {settings.provider}")

            user_text = truncate_post(post_text)
            if len(user_text) < MIN_TEXT_LENGTH:
                raise ContentTooShortError()

            system_prompt = build_system_prompt(settings)
            logger.debug(
                "generation: using %s system prompt: %s",
                "custom" if settings.system_prompt_override else "default",
                system_prompt[:120],
            )
            text = await self.generate(
                GenerationRequest(
                    provider=settings.provider,
                    model=settings.model,
                    credential=settings.credential,
                    system_prompt=system_prompt,
                    user_text=user_text,
                )
            )
        except QuipliError as e:
            logger.warning("generation: %s", e.message)
            return Failure(e.kind, e.message)

        logger.info("generation: returned comment: %s", text[:80])
        return Comment(text)

    async def probe(self, provider: str | None, model: str | None, credential: str | None) -> ProbeResult:
        """Check a credential with a fixed throwaway prompt."""
        if not (provider and model and credential):
            return ProbeResult(valid=False, error=MISSING_FIELDS)
        logger.info("probe: testing key %s for %s/%s", redact(credential), provider, model)
        try:
            await self.generate(
                GenerationRequest(
                    provider=provider,
                    model=model,
                    credential=credential,
                    system_prompt=PROBE_SYSTEM_PROMPT,
                    user_text=PROBE_USER_TEXT,
                )
            )
        except QuipliError as e:
            logger.info("probe: key rejected: %s", e.message)
            return ProbeResult(valid=False, error=e.message)
        except Exception as e:
            logger.exception("probe: unexpected error testing %s key", provider)
            return ProbeResult(valid=False, error=str(e) or UNEXPECTED_ERROR)
        return ProbeResult(valid=True)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http_client.aclose()
