"""
Engine kernel test configuration.

Fixtures for a feed document, a scripted generator and an engine with
short timers. The builders themselves live in ``helpers``.
"""

from __future__ import annotations

import pytest

from engine.kernel.assembly import CommentEngine
from engine.kernel.dom import Document
from engine.kernel.mock_llm import MockGenerator
from engine.kernel.tests.helpers import FAST, SETTINGS, Feed


@pytest.fixture
def document() -> Document:
    return Document()


@pytest.fixture
def feed(document: Document) -> Feed:
    return Feed(document)


@pytest.fixture
def generator() -> MockGenerator:
    return MockGenerator()


@pytest.fixture
def make_engine(document: Document, generator: MockGenerator):
    def build(**kwargs) -> CommentEngine:
        kwargs.setdefault("timings", FAST)
        return CommentEngine(document, kwargs.pop("generator", generator), kwargs.pop("settings", SETTINGS), **kwargs)

    return build


@pytest.fixture
def engine(make_engine) -> CommentEngine:
    return make_engine()
