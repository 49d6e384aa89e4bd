"""
OpenAI backend.

Chat Completions through the openai SDK: system plus user message, first
choice's message content.
"""

from __future__ import annotations

import logging

import httpx
import openai

from engine.kernel.errors import NetworkError, ProviderFormatError
from engine.kernel.types import GenerationRequest
from quipli.services.provider_errors import classify_status

logger = logging.getLogger(__name__)

LABEL = "OpenAI"
MAX_TOKENS = 300


class OpenAIClient:
    def __init__(self, http_client: httpx.AsyncClient, timeout: float):
        self.http_client = http_client
        self.timeout = timeout

    def _client(self, api_key: str) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=api_key,
            http_client=self.http_client,
            max_retries=0,
            timeout=self.timeout,
        )

    async def complete(self, request: GenerationRequest) -> str:
        try:
            client = self._client(request.credential)
            completion = await client.chat.completions.create(
                model=request.model,
                max_completion_tokens=MAX_TOKENS,
                messages=[
                    {"role": "system", "content": request.system_prompt},
                    {"role": "user", "content": request.user_text},
                ],
            )
        except openai.APIStatusError as e:
            raise classify_status(LABEL, e.status_code, e.response.text) from e
        except openai.APIConnectionError as e:
            logger.warning("openai: transport failure: %s", e)
            raise NetworkError() from e
        except (openai.APIResponseValidationError, ValueError) as e:
            raise ProviderFormatError.malformed(LABEL) from e

        if isinstance(completion, str):
            raise ProviderFormatError.malformed(LABEL)

        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None)
        if not text:
            raise ProviderFormatError.unexpected(LABEL)
        return text.strip()
