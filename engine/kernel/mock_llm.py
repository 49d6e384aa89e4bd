"""
Mock generator for deterministic testing and UX timing simulation.

Returns scripted comments (or failures) with configurable delays.
Used in tests (instant profile) and UX testing (realistic profiles).
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Iterable

from engine.kernel.errors import QuipliError
from engine.kernel.types import Comment, Failure, GenerationResult, SettingsSnapshot

DELAY_PROFILES: dict[str, dict[str, int]] = {
    "instant": {"think_ms": 0},
    "realistic": {"think_ms": 1200},
    "slow": {"think_ms": 3000},
}

DEFAULT_REPLY = "Great insight, thanks for sharing this perspective!"


class MockGenerator:
    """Scripted stand-in for the real Generation Client."""

    def __init__(
        self,
        replies: Iterable[str | QuipliError] = (),
        *,
        profile: str = "instant",
        default: str = DEFAULT_REPLY,
    ):
        if profile not in DELAY_PROFILES:
            raise ValueError(f"Unknown delay profile: {profile!r}. Valid profiles: {list(DELAY_PROFILES)}")
        self.profile = profile
        self.default = default
        self._script: deque[str | QuipliError] = deque(replies)
        self.calls: list[tuple[str, SettingsSnapshot]] = []
        self.active = 0
        self.max_active = 0
        self._gate: asyncio.Event | None = None

    def hold(self) -> None:
        """Block every generation until ``release()`` is called."""
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    def script(self, *replies: str | QuipliError) -> None:
        self._script.extend(replies)

    async def generate_comment(self, post_text: str, settings: SettingsSnapshot) -> GenerationResult:
        """
        Return the next scripted reply.

        A scripted QuipliError becomes a Failure with the error's kind and
        message. With an empty script the default reply is returned.
        """
        self.calls.append((post_text, settings))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            think_ms = DELAY_PROFILES[self.profile]["think_ms"]
            if think_ms > 0:
                await asyncio.sleep(think_ms / 1000)
            gate = self._gate
            if gate is not None:
                await gate.wait()
            reply = self._script.popleft() if self._script else self.default
        finally:
            self.active -= 1

        if isinstance(reply, QuipliError):
            return Failure(reply.kind, reply.message)
        return Comment(reply)

    async def aclose(self) -> None:
        self.release()
