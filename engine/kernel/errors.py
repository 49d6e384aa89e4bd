"""
Quipli Kernel: Error Taxonomy

Every failure a user can see maps to one of these. The generation client
raises the backend-facing ones, the lifecycle raises the content and
injection ones, and all of them are caught at the item boundary and
rendered as a transient message.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    CONTENT_TOO_SHORT = "content_too_short"
    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    PROVIDER_HTTP = "provider_http"
    PROVIDER_FORMAT = "provider_format"
    EDITOR_NOT_FOUND = "editor_not_found"
    INJECTION = "injection"


class QuipliError(Exception):
    """Base class for user-facing errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(QuipliError):
    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str = "Please configure your API provider and key") -> None:
        super().__init__(message)


class ContentTooShortError(QuipliError):
    kind = ErrorKind.CONTENT_TOO_SHORT

    def __init__(self, message: str = "Post text is too short to generate a meaningful comment") -> None:
        super().__init__(message)


class NetworkError(QuipliError):
    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network error - check your internet connection") -> None:
        super().__init__(message)


class AuthError(QuipliError):
    kind = ErrorKind.AUTH

    def __init__(self, provider_label: str) -> None:
        super().__init__(f"Invalid API key for {provider_label}")
        self.provider_label = provider_label


class RateLimitError(QuipliError):
    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str = "Rate limit exceeded - please wait a moment and try again") -> None:
        super().__init__(message)


class ProviderHttpError(QuipliError):
    kind = ErrorKind.PROVIDER_HTTP

    def __init__(self, provider_label: str, status_code: int, detail: str = "") -> None:
        super().__init__(f"{provider_label} API error ({status_code}): {detail[:200]}")
        self.provider_label = provider_label
        self.status_code = status_code


class ProviderFormatError(QuipliError):
    kind = ErrorKind.PROVIDER_FORMAT

    @classmethod
    def malformed(cls, provider_label: str) -> ProviderFormatError:
        """Body could not be parsed as structured data at all."""
        return cls(f"{provider_label} returned a malformed response")

    @classmethod
    def unexpected(cls, provider_label: str) -> ProviderFormatError:
        """Body parsed but the text field is missing."""
        return cls(f"{provider_label} returned an unexpected response format")


class EditorNotFoundError(QuipliError):
    kind = ErrorKind.EDITOR_NOT_FOUND

    def __init__(self, message: str = "Could not find comment editor - try clicking Comment manually") -> None:
        super().__init__(message)


class InjectionError(QuipliError):
    kind = ErrorKind.INJECTION

    def __init__(self, message: str = "Failed to inject comment into editor") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Programming errors (never rendered)
# ---------------------------------------------------------------------------


class InvalidTransition(RuntimeError):
    """Raised when the lifecycle is asked to follow an edge that does not exist."""


class DomError(RuntimeError):
    """Raised on structural misuse of the document tree."""
