"""
Quipli Kernel: Shared Types

Data classes used across the watcher, gate, admission controller,
lifecycle and injection adapter. These are the contracts that bind the
kernel together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from engine.kernel.errors import ErrorKind

if TYPE_CHECKING:
    import asyncio

    from engine.kernel.dom import Node

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_CONCURRENCY = 3
MIN_TEXT_LENGTH = 20
MAX_POST_CHARS = 2000
VISIBILITY_THRESHOLD = 0.3

# Class-name prefix reserved for elements the engine inserts itself.
UI_PREFIX = "quipli-"

DEFAULT_TONE = "professional"


@dataclass(frozen=True)
class EngineTimings:
    """Timer durations in seconds."""

    debounce: float = 0.2
    error_clear: float = 5.0
    editor_timeout: float = 4.0
    focus_settle: float = 0.1


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class LifecycleState(str, Enum):
    DISCOVERED = "discovered"
    READY = "ready"
    QUEUED = "queued"
    GENERATING = "generating"
    PREVIEW = "preview"
    ERROR = "error"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    SKIPPED = "skipped"
    IDLE = "idle"


TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.DISCOVERED: frozenset({LifecycleState.READY}),
    LifecycleState.READY: frozenset(
        {LifecycleState.QUEUED, LifecycleState.GENERATING, LifecycleState.SKIPPED}
    ),
    LifecycleState.QUEUED: frozenset({LifecycleState.GENERATING}),
    LifecycleState.GENERATING: frozenset({LifecycleState.PREVIEW, LifecycleState.ERROR}),
    LifecycleState.PREVIEW: frozenset(
        {LifecycleState.ACCEPTED, LifecycleState.DISMISSED, LifecycleState.GENERATING}
    ),
    LifecycleState.ERROR: frozenset({LifecycleState.IDLE}),
    LifecycleState.ACCEPTED: frozenset(),
    LifecycleState.DISMISSED: frozenset(),
    LifecycleState.SKIPPED: frozenset(),
    LifecycleState.IDLE: frozenset(),
}


@dataclass(eq=False)
class ItemRecord:
    """One content item tracked by the arena."""

    handle: int
    node: Node
    state: LifecycleState = LifecycleState.DISCOVERED
    text: str = ""
    preview: str | None = None
    # Pending auto-clear timers for transient messages on this item.
    timers: list[asyncio.TimerHandle] = field(default_factory=list)

    @property
    def attached(self) -> bool:
        return self.node.is_connected


@dataclass(frozen=True)
class QueueEntry:
    handle: int
    text: str


# ---------------------------------------------------------------------------
# Settings snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SettingsSnapshot:
    """
    Read-mostly user settings, owned by the configuration collaborator.

    The engine reads one snapshot per request and swaps it on change
    notifications.
    """

    provider: str | None = None
    model: str | None = None
    credential: str | None = None
    tone: str = DEFAULT_TONE
    enabled: bool = False
    system_prompt_override: str | None = None

    def merged(self, changes: dict[str, Any]) -> SettingsSnapshot:
        """Return a copy with known keys replaced; unknown keys are ignored."""
        known = {k: v for k, v in changes.items() if k in self.__dataclass_fields__}
        if "tone" in known and not known["tone"]:
            known["tone"] = DEFAULT_TONE
        if "enabled" in known:
            known["enabled"] = bool(known["enabled"])
        data = {name: getattr(self, name) for name in self.__dataclass_fields__}
        data.update(known)
        return SettingsSnapshot(**data)


# ---------------------------------------------------------------------------
# Generation contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationRequest:
    provider: str
    model: str
    credential: str
    system_prompt: str
    user_text: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


GenerationResult = Comment | Failure


class CommentGenerator(Protocol):
    """Anything that turns item text plus a settings snapshot into a result."""

    async def generate_comment(self, post_text: str, settings: SettingsSnapshot) -> GenerationResult: ...
