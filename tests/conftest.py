"""
Pytest configuration for a2ui-engine tests

Shared fixtures: a fresh engine with the standard catalog, the canonical
"s1" surface messages and a scripted in-memory duplex transport.
"""
import os

import pytest

from a2ui_engine.config.loader import invalidate_config_cache
from a2ui_engine.protocol.messages import BeginRenderingMessage, SurfaceUpdateMessage
from a2ui_engine.surface.catalog import create_default_catalog
from a2ui_engine.surface.engine import SurfaceEngine
from a2ui_engine.transport.base import TransportEvent


class ScriptedTransport:
    """Duplex transport double: fails ``failures`` times, then plays ``events``"""

    def __init__(self, events=None, failures=0):
        self.events = list(events) if events is not None else [TransportEvent(kind="complete")]
        self.failures = failures
        self.turns = []

    async def open_stream(self, turn):
        self.turns.append(turn)
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("connection refused")
        for event in self.events:
            yield event


@pytest.fixture
def make_transport():
    return ScriptedTransport


@pytest.fixture
def engine():
    return SurfaceEngine(catalog=create_default_catalog())


@pytest.fixture
def s1_components():
    return [
        {"id": "root", "component": {"Column": {"explicitList": ["t"]}}},
        {"id": "t", "component": {"Text": {"text": {"literalString": "Hi"}}}},
    ]


@pytest.fixture
def s1_update(s1_components):
    return SurfaceUpdateMessage(surfaceId="s1", root="root", components=s1_components)


@pytest.fixture
def s1_begin():
    return BeginRenderingMessage(surfaceId="s1", root="root")


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Each test loads configuration from scratch"""
    for name in list(os.environ):
        if name.startswith("A2UI_"):
            monkeypatch.delenv(name, raising=False)
    invalidate_config_cache()
    yield
    invalidate_config_cache()
