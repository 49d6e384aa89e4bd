"""
Error classification shared by every generation backend.

One policy for all providers, so the same HTTP outcome always reads the
same way to the user whichever backend produced it.
"""

from __future__ import annotations

from engine.kernel.errors import AuthError, ProviderHttpError, QuipliError, RateLimitError


def classify_status(provider_label: str, status_code: int, body: str = "") -> QuipliError | None:
    """
    Map an HTTP status to a taxonomy error.

    Returns None for 2xx. ``body`` is only used for the generic case and is
    cut to 200 characters.
    """
    if status_code in (401, 403):
        return AuthError(provider_label)
    if status_code == 429:
        return RateLimitError()
    if not 200 <= status_code < 300:
        return ProviderHttpError(provider_label, status_code, body)
    return None
