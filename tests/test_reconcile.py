# tests/test_reconcile.py
from services.knowledge.content_store import upsert_topic
from services.knowledge.graph_sync import sync_article_to_graph
from services.knowledge.reconcile import find_orphans, sync_topic_ids

from conftest import FIXED_NOW


def test_orphans_and_topic_id_resync(session_factory, graph_store):
    with session_factory() as db:
        topic_id = upsert_topic(db, "black hole", [], FIXED_NOW)
        db.commit()

    tx = graph_store.begin_transaction()
    sync_article_to_graph(tx, "black hole", ["event horizon"], [], "stale-id")
    sync_article_to_graph(tx, "quasar", [], [], "lost-id")
    tx.commit()

    with session_factory() as db:
        orphans = find_orphans(db, graph_store)
        # Ghost "event horizon" is expected; only backed nodes count as orphans
        assert [node["name"] for node in orphans] == ["quasar"]

        assert sync_topic_ids(db, graph_store) == 1
        assert sync_topic_ids(db, graph_store) == 0

    assert graph_store.node("black hole")["topicId"] == topic_id
