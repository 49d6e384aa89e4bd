"""
Quipli Kernel: the pure engine.

Components, all sharing one EngineContext:
  watcher: discovery pass plus debounced rediscovery on mutations
  visibility: one-shot readiness once an item is 30% in view
  admission: concurrency ceiling and FIFO overflow queue
  lifecycle: per-item state machine and preview actions
  injection: writes accepted text into the host's editor
  assembly: wires the components together (CommentEngine)

The document tree in ``dom`` stands in for the host page.
"""

from engine.kernel.assembly import CommentEngine
from engine.kernel.dom import Document, Node
from engine.kernel.errors import ErrorKind, QuipliError
from engine.kernel.mock_llm import MockGenerator
from engine.kernel.types import (
    Comment,
    EngineTimings,
    Failure,
    GenerationRequest,
    GenerationResult,
    LifecycleState,
    SettingsSnapshot,
)

__all__ = [
    "CommentEngine",
    "Document",
    "Node",
    "ErrorKind",
    "QuipliError",
    "MockGenerator",
    "Comment",
    "Failure",
    "GenerationRequest",
    "GenerationResult",
    "EngineTimings",
    "LifecycleState",
    "SettingsSnapshot",
]
