# tests/test_graph_store.py
from unittest.mock import MagicMock, patch

import pytest

from services.graph_store import Neo4jGraphStore, build_graph_store
from services.graph_store import _DELETE_GHOST_ALIAS, _FOLD_STEPS, _MERGE_MENTIONS, _MERGE_TOPIC
from services.knowledge.graph_sync import sync_article_to_graph
from services.memory_graph_store import MemoryGraphStore


@pytest.fixture
def neo4j_driver():
    driver = MagicMock()
    session = driver.session.return_value
    tx = session.begin_transaction.return_value
    tx.closed.return_value = False
    return driver


def test_neo4j_transaction_runs_cypher_in_one_tx(neo4j_driver):
    store = Neo4jGraphStore(neo4j_driver)
    tx_mock = neo4j_driver.session.return_value.begin_transaction.return_value
    tx_mock.run.return_value.single.return_value = {"folded": 1}

    tx = store.begin_transaction()
    sync_article_to_graph(tx, "black hole", ["event horizon"], [], "b1")
    assert tx.fold_node_into("블랙홀", "black hole") == 1
    tx.commit()
    tx.close()

    statements = [call.args[0] for call in tx_mock.run.call_args_list]
    assert statements[0] == _MERGE_TOPIC
    assert statements[1] == _MERGE_MENTIONS
    assert statements[2:5] == list(_FOLD_STEPS)
    assert statements[5] == _DELETE_GHOST_ALIAS
    tx_mock.commit.assert_called_once()
    neo4j_driver.session.return_value.close.assert_called_once()


def test_neo4j_rollback_skips_closed_transaction(neo4j_driver):
    store = Neo4jGraphStore(neo4j_driver, database="knowledge")
    tx_mock = neo4j_driver.session.return_value.begin_transaction.return_value

    tx = store.begin_transaction()
    tx.rollback()
    tx_mock.rollback.assert_called_once()

    tx_mock.closed.return_value = True
    tx.rollback()
    tx_mock.rollback.assert_called_once()
    neo4j_driver.session.assert_called_with(database="knowledge")


def test_neo4j_empty_neighborhood_skips_query(neo4j_driver):
    store = Neo4jGraphStore(neo4j_driver)
    assert store.neighborhood([]) == {"nodes": [], "links": []}
    neo4j_driver.session.assert_not_called()


def test_build_graph_store_selects_backend(monkeypatch):
    assert isinstance(build_graph_store("memory"), MemoryGraphStore)

    monkeypatch.setenv("GRAPH_BACKEND", "neo4j")
    with patch("clients.neo4j_client.create_neo4j_driver") as mock_driver:
        store = build_graph_store()
    assert isinstance(store, Neo4jGraphStore)
    mock_driver.assert_called_once()

    with pytest.raises(ValueError):
        build_graph_store("arangodb")


def test_memory_transaction_is_isolated_until_commit(graph_store):
    tx = graph_store.begin_transaction()
    sync_article_to_graph(tx, "black hole", [], [], "b1")
    assert not graph_store.has_topic("black hole")

    tx.rollback()
    assert not graph_store.has_topic("black hole")

    with pytest.raises(RuntimeError):
        tx.commit()


def test_memory_overlapping_transactions_both_land(graph_store):
    tx_a = graph_store.begin_transaction()
    tx_b = graph_store.begin_transaction()
    sync_article_to_graph(tx_a, "quasar", ["black hole"], [], "q1")
    sync_article_to_graph(tx_b, "pulsar", ["neutron star"], [], "p1")

    tx_a.commit()
    tx_b.commit()

    assert graph_store.has_topic("quasar")
    assert graph_store.has_topic("pulsar")
    assert ("quasar", "MENTIONS", "black hole") in graph_store.edges_of("quasar")
    assert graph_store.node("black hole")["ghost"] is True


def test_memory_neighborhood(graph_store):
    tx = graph_store.begin_transaction()
    sync_article_to_graph(tx, "black hole", ["event horizon"], ["Astronomy"], "b1")
    sync_article_to_graph(tx, "quasar", ["black hole"], [], "q1")
    tx.commit()

    result = graph_store.neighborhood(["black hole"])
    names = sorted(node["name"] for node in result["nodes"])

    # Tag nodes are not part of the concept neighborhood
    assert names == ["black hole", "event horizon", "quasar"]
    assert {"source": "Topic:black hole", "target": "Topic:event horizon", "type": "MENTIONS"} in result["links"]
    assert len(result["links"]) == 2
