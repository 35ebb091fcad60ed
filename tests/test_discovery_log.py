# tests/test_discovery_log.py
from datetime import timedelta

import pytest
from sqlalchemy import select

from database.models.knowledge_model import DiscoveryRecord
from services.knowledge.content_store import upsert_topic
from services.knowledge.discovery_log import has_discovered, list_discoveries, record_discovery
from services.knowledge.errors import DiscoveryLogFailure

from conftest import FIXED_NOW


def _topic(session_factory, name):
    with session_factory() as db:
        topic_id = upsert_topic(db, name, [], FIXED_NOW)
        db.commit()
    return topic_id


def test_repeat_discovery_refreshes_timestamp(session_factory):
    topic_id = _topic(session_factory, "black hole")
    later = FIXED_NOW + timedelta(days=2)

    record_discovery(session_factory, "u1", topic_id, FIXED_NOW)
    record_discovery(session_factory, "u1", topic_id, later)

    with session_factory() as db:
        rows = list(db.scalars(select(DiscoveryRecord)))
        assert has_discovered(db, "u1", topic_id)
        assert not has_discovered(db, "u2", topic_id)

    assert len(rows) == 1
    assert rows[0].discovered_at.replace(tzinfo=None) == later.replace(tzinfo=None)


def test_ship_log_is_newest_first(session_factory):
    first = _topic(session_factory, "black hole")
    second = _topic(session_factory, "quasar")
    record_discovery(session_factory, "u1", first, FIXED_NOW)
    record_discovery(session_factory, "u1", second, FIXED_NOW + timedelta(hours=1))
    record_discovery(session_factory, "u2", first, FIXED_NOW)

    with session_factory() as db:
        log = list_discoveries(db, "u1")

    assert [entry["name"] for entry in log] == ["quasar", "black hole"]
    assert log[0]["topic_id"] == second


def test_unknown_topic_raises_discovery_failure(session_factory):
    with pytest.raises(DiscoveryLogFailure):
        record_discovery(session_factory, "u1", "missing-topic", FIXED_NOW)
