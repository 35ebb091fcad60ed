# services/knowledge/star_map.py
import logging
from typing import Any, Dict, Iterable, List

import networkx as nx
from networkx.readwrite import json_graph

logger = logging.getLogger(__name__)

KNOWN_STYLE = {"group": "known", "val": 20, "color": "#00F0FF"}
MYSTERY_STYLE = {"group": "mystery", "val": 10, "color": "#FFA500"}


def build_star_map(neighborhood: Dict[str, List[Dict[str, Any]]], discovered_names: Iterable[str]) -> Dict:
    """
    Per-user view of the concept graph.
    Discovered topics are "known"; anything they touch but the user has not
    visited yet is a "mystery" node.
    """
    discovered = set(discovered_names)
    G = nx.DiGraph()

    for node in neighborhood.get("nodes", []):
        style = KNOWN_STYLE if node.get("name") in discovered else MYSTERY_STYLE
        G.add_node(node["id"], name=node.get("name"), **style)

    for link in neighborhood.get("links", []):
        source, target = link.get("source"), link.get("target")
        if source in G and target in G:
            G.add_edge(source, target, type=link.get("type"))

    known = sum(1 for _, data in G.nodes(data=True) if data["group"] == "known")
    logger.info(f"🌌 Star map: {G.number_of_nodes()} nodes ({known} known), {G.number_of_edges()} links")
    return json_graph.node_link_data(G, edges="links")
