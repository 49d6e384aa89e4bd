"""
Debounced API key validation.

Each edit to the key restarts an 800 ms timer; when it fires the key is
probed once. A result that arrives after a newer edit is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from quipli.services.ai_provider import GenerationClient

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.8


class KeyStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    CHECKING = "checking"
    VALID = "valid"
    INVALID = "invalid"


class KeyValidator:
    def __init__(
        self,
        client: GenerationClient,
        *,
        delay: float = DEBOUNCE_SECONDS,
        on_change: Callable[[KeyStatus, str], None] | None = None,
    ):
        self.client = client
        self.delay = delay
        self.on_change = on_change
        self.status = KeyStatus.IDLE
        self.message = ""
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._generation = 0

    def _set(self, status: KeyStatus, message: str) -> None:
        self.status = status
        self.message = message
        if self.on_change is not None:
            self.on_change(status, message)

    def schedule(self, provider: str | None, model: str | None, credential: str | None) -> None:
        """Restart the debounce for a freshly edited key."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        key = (credential or "").strip()
        if not key:
            self._set(KeyStatus.IDLE, "")
            return
        self._set(KeyStatus.PENDING, "Will validate shortly…")
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire, self._generation, provider, model, key)

    def clear(self) -> None:
        """Forget any pending or running check (e.g. the provider changed)."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._set(KeyStatus.IDLE, "")

    def _fire(self, generation: int, provider: str | None, model: str | None, key: str) -> None:
        self._timer = None
        self._task = asyncio.get_running_loop().create_task(self._check(generation, provider, model, key))

    async def _check(self, generation: int, provider: str | None, model: str | None, key: str) -> None:
        self._set(KeyStatus.CHECKING, "Validating…")
        result = await self.client.probe(provider, model, key)
        if generation != self._generation:
            logger.debug("key validator: dropping stale result")
            return
        if result.valid:
            self._set(KeyStatus.VALID, "Valid key")
        else:
            self._set(KeyStatus.INVALID, result.error or "Invalid key")

    async def wait(self) -> None:
        """Wait for the pending check, if any, to finish."""
        while self._timer is not None:
            await asyncio.sleep(0.01)
        if self._task is not None:
            await self._task
