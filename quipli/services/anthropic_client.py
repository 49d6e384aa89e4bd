"""
Anthropic backend.

Calls the Messages API through the anthropic SDK and returns the first
text block. Retries are disabled; one user action is one request.
"""

from __future__ import annotations

import logging

import anthropic
import httpx

from engine.kernel.errors import NetworkError, ProviderFormatError
from engine.kernel.types import GenerationRequest
from quipli.services.provider_errors import classify_status

logger = logging.getLogger(__name__)

LABEL = "Claude"
MAX_TOKENS = 300


class AnthropicClient:
    """Single-shot completions from the Anthropic Messages API."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float):
        """
        Args:
            http_client: Shared connection pool, owned by the caller
            timeout: Request timeout in seconds
        """
        self.http_client = http_client
        self.timeout = timeout

    def _client(self, api_key: str) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(
            api_key=api_key,
            http_client=self.http_client,
            max_retries=0,
            timeout=self.timeout,
        )

    async def complete(self, request: GenerationRequest) -> str:
        try:
            client = self._client(request.credential)
            message = await client.messages.create(
                model=request.model,
                max_tokens=MAX_TOKENS,
                system=request.system_prompt,
                messages=[{"role": "user", "content": request.user_text}],
            )
        except anthropic.APIStatusError as e:
            raise classify_status(LABEL, e.status_code, e.response.text) from e
        except anthropic.APIConnectionError as e:
            logger.warning("anthropic: transport failure: %s", e)
            raise NetworkError() from e
        except (anthropic.APIResponseValidationError, ValueError) as e:
            raise ProviderFormatError.malformed(LABEL) from e

        # Without strict validation the SDK hands back raw text for a non-JSON body.
        if isinstance(message, str):
            raise ProviderFormatError.malformed(LABEL)

        blocks = getattr(message, "content", None) or []
        text = getattr(blocks[0], "text", None) if blocks else None
        if not text:
            raise ProviderFormatError.unexpected(LABEL)
        return text.strip()
