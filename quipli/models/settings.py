"""User settings and credential probe models."""

from pydantic import BaseModel, ConfigDict, field_validator

from engine.kernel.types import DEFAULT_TONE
from quipli.catalog import DEFAULT_MODEL, DEFAULT_PROVIDER, is_known_provider


class StoredSettings(BaseModel):
    """User settings as persisted on disk."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    credential: str | None = None
    tone: str = DEFAULT_TONE
    enabled: bool = False
    system_prompt_override: str | None = None

    @field_validator("provider")
    @classmethod
    def provider_must_be_known(cls, value: str) -> str:
        if not is_known_provider(value):
            raise ValueError(f"unknown provider: {value!r}")
        return value

    @field_validator("tone")
    @classmethod
    def tone_defaults_when_blank(cls, value: str) -> str:
        return value.strip() or DEFAULT_TONE

    @field_validator("credential", "system_prompt_override")
    @classmethod
    def blank_is_unset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class ProbeResult(BaseModel):
    """Outcome of a credential check."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    error: str | None = None
