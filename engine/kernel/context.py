"""
Quipli Kernel: Engine Context

The one object every component receives. It holds the shared mutable
state (settings snapshot, arena, active flag) and the component handles
the assembly binds after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from engine.kernel.dom import Document
from engine.kernel.registry import ItemRegistry
from engine.kernel.selectors import STRATEGIES, Strategy, TargetKind
from engine.kernel.types import (
    MAX_CONCURRENCY,
    VISIBILITY_THRESHOLD,
    CommentGenerator,
    EngineTimings,
    SettingsSnapshot,
)

if TYPE_CHECKING:
    from engine.kernel.admission import AdmissionController
    from engine.kernel.injection import InjectionAdapter
    from engine.kernel.lifecycle import ItemLifecycle
    from engine.kernel.ui import ItemUI
    from engine.kernel.visibility import VisibilityGate
    from engine.kernel.watcher import DocumentWatcher


@dataclass
class EngineContext:
    document: Document
    generator: CommentGenerator
    settings: SettingsSnapshot = field(default_factory=SettingsSnapshot)
    timings: EngineTimings = field(default_factory=EngineTimings)
    max_concurrency: int = MAX_CONCURRENCY
    visibility_threshold: float = VISIBILITY_THRESHOLD
    strategies: dict[TargetKind, tuple[Strategy, ...]] = field(default_factory=lambda: dict(STRATEGIES))
    registry: ItemRegistry = field(default_factory=ItemRegistry)
    active: bool = False

    # Bound by CommentEngine
    watcher: DocumentWatcher = field(init=False)
    gate: VisibilityGate = field(init=False)
    admission: AdmissionController = field(init=False)
    lifecycle: ItemLifecycle = field(init=False)
    ui: ItemUI = field(init=False)
    injector: InjectionAdapter = field(init=False)
