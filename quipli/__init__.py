"""Quipli: drafts comments for items in a content feed."""

__version__ = "0.1.0"
