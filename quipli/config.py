"""
Quipli configuration.

Two layers:
  Settings: process settings from environment variables, read once
  SettingsStore: the user's settings (provider, model, key, tone, enabled),
                 optionally persisted to a JSON file, with change
                 notifications

Environment:
  QUIPLI_SETTINGS_PATH     settings file (default ~/.quipli/settings.json)
  QUIPLI_REQUEST_TIMEOUT   per-request timeout in seconds (default 60)
  QUIPLI_LOG_LEVEL         logging level (default INFO)
  QUIPLI_USE_MOCK_LLM      "true" to use the scripted mock generator
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from engine.kernel.types import SettingsSnapshot
from quipli.catalog import default_model, has_model
from quipli.models.settings import StoredSettings

logger = logging.getLogger(__name__)


class Settings:
    """Process settings from environment variables."""

    SETTINGS_PATH: str = os.environ.get("QUIPLI_SETTINGS_PATH", str(Path.home() / ".quipli" / "settings.json"))
    REQUEST_TIMEOUT: float = float(os.environ.get("QUIPLI_REQUEST_TIMEOUT", "60"))
    LOG_LEVEL: str = os.environ.get("QUIPLI_LOG_LEVEL", "INFO")
    USE_MOCK_LLM: bool = os.environ.get("QUIPLI_USE_MOCK_LLM", "").lower() == "true"


# Singleton instance
settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install one stream handler on the quipli and engine loggers."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    for name in ("quipli", "engine"):
        target = logging.getLogger(name)
        target.handlers = [handler]
        target.setLevel((level or settings.LOG_LEVEL).upper())
        target.propagate = False


def redact(credential: str | None) -> str:
    """Log-safe form of a credential: only the last four characters survive."""
    if not credential:
        return "(none)"
    return "***" + credential[-4:]


SettingsListener = Callable[[dict[str, Any]], None]


class SettingsStore:
    """
    User settings with defaults, validation and change notifications.

    Listeners receive ``{key: new_value}`` for the keys that actually
    changed. With a ``path`` every change is written back to disk with
    owner-only permissions.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        self._values = StoredSettings()
        self._listeners: list[SettingsListener] = []
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
            self._values = StoredSettings.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("settings: ignoring unreadable settings file %s: %s", self.path, e)
            self._values = StoredSettings()

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._values.model_dump(), f, indent=2)
        # Holds the API key: owner-only read/write
        self.path.chmod(0o600)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def values(self) -> StoredSettings:
        return self._values.model_copy()

    def get(self, key: str) -> Any:
        return getattr(self._values, key)

    def snapshot(self) -> SettingsSnapshot:
        v = self._values
        return SettingsSnapshot(
            provider=v.provider,
            model=v.model,
            credential=v.credential,
            tone=v.tone,
            enabled=v.enabled,
            system_prompt_override=v.system_prompt_override,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update(self, **changes: Any) -> dict[str, Any]:
        """
        Apply ``changes`` and notify listeners.

        Raises:
            KeyError: unknown setting name
            pydantic.ValidationError: a value does not validate

        Returns:
            The keys that changed, with their new values.
        """
        unknown = set(changes) - set(StoredSettings.model_fields)
        if unknown:
            raise KeyError(f"unknown setting(s): {', '.join(sorted(unknown))}")

        before = self._values.model_dump()
        merged = {**before, **changes}
        # Switching provider drops a model that provider does not offer.
        if "provider" in changes and "model" not in changes and not has_model(merged["provider"], merged["model"]):
            merged["model"] = default_model(merged["provider"]) or merged["model"]
        self._values = StoredSettings.model_validate(merged)

        after = self._values.model_dump()
        changed = {key: after[key] for key in after if after[key] != before[key]}
        if not changed:
            return {}

        self._save()
        logger.info("settings: changed %s", ", ".join(sorted(changed)))
        for listener in list(self._listeners):
            listener(dict(changed))
        return changed

    def set(self, key: str, value: Any) -> dict[str, Any]:
        return self.update(**{key: value})

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def persist_defaults(self) -> None:
        """Write the current values so a first run leaves a complete file."""
        if self.path is not None and not self.path.exists():
            self._save()
