# tests/conftest.py
import json
import os
import sys
from datetime import datetime, timezone

import pytest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database.db import create_db_engine, init_db, make_session_factory
from services.memory_graph_store import MemoryGraphStore

FIXED_NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeGenerator:
    """Stands in for the LLM; returns queued payloads and records every call."""

    def __init__(self, payloads=None):
        self.payloads = list(payloads or [])
        self.calls = []

    def queue(self, payload):
        self.payloads.append(payload)

    def __call__(self, topic, language):
        self.calls.append((topic, language))
        if not self.payloads:
            raise AssertionError(f"Generator called unexpectedly for {topic!r}")
        payload = self.payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, str):
            return payload
        return json.dumps(payload, ensure_ascii=False)


def topic_payload(topic, canonical=None, content=None, tags=None, chat="", title=None):
    payload = {
        "topic": topic,
        "canonicalName": canonical or topic,
        "tags": tags or [],
        "content": content or f"An article about {topic}.",
        "chatResponse": chat,
    }
    if title:
        payload["title"] = title
    return payload


@pytest.fixture
def db_engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def graph_store():
    return MemoryGraphStore()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
