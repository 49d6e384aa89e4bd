"""
Pydantic models for Quipli.

All data shapes defined here. No imports from services.
"""

from quipli.models.settings import ProbeResult, StoredSettings

__all__ = [
    "ProbeResult",
    "StoredSettings",
]
