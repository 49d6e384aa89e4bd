"""
Gemini backend.

Raw httpx POST to the v1beta generateContent endpoint. The response body
is validated with pydantic before the text is pulled out.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from engine.kernel.errors import NetworkError, ProviderFormatError
from engine.kernel.types import GenerationRequest
from quipli.services.provider_errors import classify_status

logger = logging.getLogger(__name__)

LABEL = "Gemini"
MAX_TOKENS = 300
BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class _Part(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str | None = None


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore")

    parts: list[_Part] = []


class _Candidate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: _Content | None = None


class GenerateContentResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    candidates: list[_Candidate] = []

    def first_text(self) -> str | None:
        if not self.candidates or self.candidates[0].content is None:
            return None
        parts = self.candidates[0].content.parts
        return parts[0].text if parts else None


def build_payload(request: GenerationRequest) -> dict[str, Any]:
    return {
        "system_instruction": {"parts": [{"text": request.system_prompt}]},
        "contents": [{"parts": [{"text": request.user_text}]}],
        "generationConfig": {"maxOutputTokens": MAX_TOKENS},
    }


class GeminiClient:
    def __init__(self, http_client: httpx.AsyncClient, timeout: float, base_url: str = BASE_URL):
        self.http_client = http_client
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    async def complete(self, request: GenerationRequest) -> str:
        url = f"{self.base_url}/models/{request.model}:generateContent"
        try:
            response = await self.http_client.post(
                url,
                headers={"x-goog-api-key": request.credential},
                json=build_payload(request),
                timeout=self.timeout,
            )
        except httpx.TransportError as e:
            logger.warning("gemini: transport failure: %s", e)
            raise NetworkError() from e

        error = classify_status(LABEL, response.status_code, response.text)
        if error is not None:
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderFormatError.malformed(LABEL) from e

        try:
            text = GenerateContentResponse.model_validate(data).first_text()
        except ValidationError as e:
            raise ProviderFormatError.unexpected(LABEL) from e
        if not text:
            raise ProviderFormatError.unexpected(LABEL)
        return text.strip()
