# tests/test_star_map.py
import logging

from services.knowledge.star_map import KNOWN_STYLE, MYSTERY_STYLE, build_star_map


def test_known_and_mystery_nodes():
    neighborhood = {
        "nodes": [
            {"id": "n1", "name": "black hole"},
            {"id": "n2", "name": "event horizon"},
        ],
        "links": [
            {"source": "n1", "target": "n2", "type": "MENTIONS"},
            {"source": "n1", "target": "n9", "type": "MENTIONS"},
        ],
    }
    result = build_star_map(neighborhood, ["black hole"])
    nodes = {node["id"]: node for node in result["nodes"]}

    assert nodes["n1"]["group"] == KNOWN_STYLE["group"]
    assert nodes["n1"]["color"] == KNOWN_STYLE["color"]
    assert nodes["n2"]["group"] == MYSTERY_STYLE["group"]
    assert nodes["n2"]["val"] == MYSTERY_STYLE["val"]
    # Dangling links are dropped
    assert result["links"] == [{"source": "n1", "target": "n2", "type": "MENTIONS"}]


def test_empty_map():
    result = build_star_map({"nodes": [], "links": []}, [])
    assert result["nodes"] == []
    assert result["links"] == []


def test_logs_node_and_link_counts(caplog):
    neighborhood = {
        "nodes": [{"id": "n1", "name": "black hole"}, {"id": "n2", "name": "quasar"}],
        "links": [{"source": "n2", "target": "n1", "type": "MENTIONS"}],
    }
    with caplog.at_level(logging.INFO, logger="services.knowledge.star_map"):
        build_star_map(neighborhood, ["black hole"])

    assert "Star map: 2 nodes (1 known), 1 links" in caplog.text
