"""
Quipli application wiring.

Connects the settings store, the generator and the comment engine for
one document. Settings changes flow to the engine as notifications; the
engine only starts or stops when ``enabled`` flips.
"""

from __future__ import annotations

import logging
from typing import Any

from engine.kernel.assembly import CommentEngine
from engine.kernel.dom import Document
from engine.kernel.types import CommentGenerator, EngineTimings
from quipli import config
from quipli.config import SettingsStore
from quipli.services.ai_provider import GenerationClient
from quipli.services.key_validator import KeyValidator
from quipli.services.llm_provider import get_generator

logger = logging.getLogger(__name__)


class QuipliApp:
    def __init__(
        self,
        document: Document,
        store: SettingsStore | None = None,
        generator: CommentGenerator | None = None,
        *,
        timings: EngineTimings | None = None,
    ):
        self.store = store if store is not None else SettingsStore(config.settings.SETTINGS_PATH)
        self.generator = generator if generator is not None else get_generator()
        self.engine = CommentEngine(document, self.generator, self.store.snapshot(), timings=timings)
        self.key_validator = KeyValidator(self.generator) if isinstance(self.generator, GenerationClient) else None
        self._unsubscribe = self.store.subscribe(self._on_settings_changed)

    def start(self) -> None:
        """Start the engine if the user has it enabled. Needs a running loop."""
        self.store.persist_defaults()
        if self.store.get("enabled"):
            self.engine.start()
        else:
            logger.info("app: disabled, engine not started")

    def _on_settings_changed(self, changes: dict[str, Any]) -> None:
        self.engine.apply_changes(changes)
        if self.key_validator is None:
            return
        if "provider" in changes:
            self.key_validator.clear()
        if "credential" in changes:
            self.key_validator.schedule(self.store.get("provider"), self.store.get("model"), changes["credential"])

    async def aclose(self) -> None:
        self._unsubscribe()
        self.engine.stop()
        if self.key_validator is not None:
            self.key_validator.clear()
        await self.engine.wait_idle()
        aclose = getattr(self.generator, "aclose", None)
        if aclose is not None:
            await aclose()
