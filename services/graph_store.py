# services/graph_store.py
"""
Graph projection of the knowledge base.

Two backends share one transactional interface:
- Neo4jGraphStore: production, Cypher over the official driver.
- MemoryGraphStore (services/memory_graph_store.py): networkx, for local runs and tests.

Labels: (:Topic {name, topicId, ghost}), (:Tag {name})
Relationships: (:Topic)-[:MENTIONS]->(:Topic), (:Topic)-[:TAGGED]->(:Tag)
"""
import os
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class GraphTransaction(ABC):
    @abstractmethod
    def merge_topic_node(self, name: str, topic_id: Optional[str]) -> None:
        """Create or update a backed (non-ghost) Topic node."""

    @abstractmethod
    def merge_mentions(self, source: str, targets: List[str]) -> None:
        """MENTIONS edges from source; missing targets are created as ghosts."""

    @abstractmethod
    def merge_tags(self, source: str, tags: List[str]) -> None:
        ...

    @abstractmethod
    def fold_node_into(self, alias: str, canonical: str) -> int:
        """
        Move the edges of ghost nodes named like `alias` onto `canonical`
        and delete them. Returns how many nodes were folded.
        """

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...

    def close(self) -> None:
        pass


class GraphStore(ABC):
    @abstractmethod
    def begin_transaction(self) -> GraphTransaction:
        ...

    @abstractmethod
    def neighborhood(self, names: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        """
        Topic nodes named in `names` plus Topic nodes directly connected to them.
        Returns {"nodes": [{id, name, ghost, topicId}], "links": [{source, target, type}]}.
        """

    @abstractmethod
    def topic_nodes(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def set_topic_id(self, name: str, topic_id: str) -> int:
        ...

    @abstractmethod
    def reset(self) -> None:
        ...

    def close(self) -> None:
        pass


# ------------------------------------------------------------
# Neo4j backend
# ------------------------------------------------------------
_MERGE_TOPIC = """
MERGE (main:Topic {name: $name})
ON CREATE SET main.createdAt = datetime(), main.visits = 0
ON MATCH SET main.updatedAt = datetime()
SET main.topicId = $topicId, main.ghost = false
"""

_MERGE_MENTIONS = """
MATCH (main:Topic {name: $name})
UNWIND $targets AS target
MERGE (related:Topic {name: target})
ON CREATE SET related.createdAt = datetime(), related.ghost = true
MERGE (main)-[r:MENTIONS]->(related)
ON CREATE SET r.createdAt = datetime()
"""

_MERGE_TAGS = """
MATCH (main:Topic {name: $name})
UNWIND $tags AS tagName
MERGE (tag:Tag {name: tagName})
MERGE (main)-[r:TAGGED]->(tag)
ON CREATE SET r.createdAt = datetime()
"""

_MATCH_GHOST_ALIAS = """
MATCH (main:Topic {name: $canonical})
MATCH (alias:Topic)
WHERE toLower(alias.name) = toLower($alias) AND alias <> main AND coalesce(alias.ghost, false) = true
"""

_FOLD_STEPS = (
    # Incoming mentions now point at the canonical node
    _MATCH_GHOST_ALIAS + """
MATCH (src:Topic)-[:MENTIONS]->(alias)
WHERE src <> main AND src <> alias
MERGE (src)-[r:MENTIONS]->(main)
ON CREATE SET r.createdAt = datetime()
""",
    # Outgoing mentions originate from the canonical node
    _MATCH_GHOST_ALIAS + """
MATCH (alias)-[:MENTIONS]->(dst:Topic)
WHERE dst <> main AND dst <> alias
MERGE (main)-[r:MENTIONS]->(dst)
ON CREATE SET r.createdAt = datetime()
""",
    _MATCH_GHOST_ALIAS + """
MATCH (alias)-[:TAGGED]->(tag:Tag)
MERGE (main)-[r:TAGGED]->(tag)
ON CREATE SET r.createdAt = datetime()
""",
)

_DELETE_GHOST_ALIAS = _MATCH_GHOST_ALIAS + """
DETACH DELETE alias
RETURN count(*) AS folded
"""


class Neo4jGraphTransaction(GraphTransaction):
    def __init__(self, session):
        self._session = session
        self._tx = session.begin_transaction()

    def merge_topic_node(self, name: str, topic_id: Optional[str]) -> None:
        self._tx.run(_MERGE_TOPIC, {"name": name, "topicId": topic_id})

    def merge_mentions(self, source: str, targets: List[str]) -> None:
        if targets:
            self._tx.run(_MERGE_MENTIONS, {"name": source, "targets": list(targets)})

    def merge_tags(self, source: str, tags: List[str]) -> None:
        if tags:
            self._tx.run(_MERGE_TAGS, {"name": source, "tags": list(tags)})

    def fold_node_into(self, alias: str, canonical: str) -> int:
        params = {"alias": alias, "canonical": canonical}
        for statement in _FOLD_STEPS:
            self._tx.run(statement, params)
        record = self._tx.run(_DELETE_GHOST_ALIAS, params).single()
        return int(record["folded"]) if record else 0

    def commit(self) -> None:
        self._tx.commit()

    def rollback(self) -> None:
        if not self._tx.closed():
            self._tx.rollback()

    def close(self) -> None:
        try:
            if not self._tx.closed():
                self._tx.close()
        finally:
            self._session.close()


class Neo4jGraphStore(GraphStore):
    def __init__(self, driver, database: Optional[str] = None):
        self._driver = driver
        self._database = database

    def _session(self):
        if self._database:
            return self._driver.session(database=self._database)
        return self._driver.session()

    def begin_transaction(self) -> GraphTransaction:
        return Neo4jGraphTransaction(self._session())

    def neighborhood(self, names: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        nodes: Dict[str, Dict[str, Any]] = {}
        links: List[Dict[str, Any]] = []
        if not names:
            return {"nodes": [], "links": []}

        with self._session() as session:
            result = session.run(
                """
                MATCH (n:Topic)
                WHERE n.name IN $names
                OPTIONAL MATCH (n)-[r]-(m:Topic)
                RETURN n, r, m
                """,
                {"names": list(names)},
            )
            for record in result:
                for node in (record["n"], record["m"]):
                    if node is not None and node.element_id not in nodes:
                        nodes[node.element_id] = _node_dict(node)
                rel = record["r"]
                if rel is not None:
                    links.append({
                        "source": rel.start_node.element_id,
                        "target": rel.end_node.element_id,
                        "type": rel.type,
                    })

        return {"nodes": list(nodes.values()), "links": links}

    def topic_nodes(self) -> List[Dict[str, Any]]:
        with self._session() as session:
            result = session.run(
                "MATCH (n:Topic) RETURN n.name AS name, n.topicId AS topicId, coalesce(n.ghost, false) AS ghost"
            )
            return [record.data() for record in result]

    def set_topic_id(self, name: str, topic_id: str) -> int:
        with self._session() as session:
            record = session.run(
                """
                MATCH (n:Topic {name: $name})
                SET n.topicId = $topicId, n.ghost = false
                RETURN count(n) AS updated
                """,
                {"name": name, "topicId": topic_id},
            ).single()
            return int(record["updated"]) if record else 0

    def reset(self) -> None:
        with self._session() as session:
            session.run("MATCH (n) DETACH DELETE n").consume()

    def close(self) -> None:
        self._driver.close()


def _node_dict(node) -> Dict[str, Any]:
    props = dict(node)
    return {
        "id": node.element_id,
        "name": props.get("name") or f"Node {node.element_id}",
        "ghost": bool(props.get("ghost", False)),
        "topicId": props.get("topicId"),
    }


def build_graph_store(backend: Optional[str] = None) -> GraphStore:
    """Pick the backend from GRAPH_BACKEND (neo4j | memory)."""
    backend = (backend or os.getenv("GRAPH_BACKEND", "neo4j")).strip().lower()

    if backend == "memory":
        from services.memory_graph_store import MemoryGraphStore
        logger.info("Using in-memory graph store")
        return MemoryGraphStore()

    if backend == "neo4j":
        from clients.neo4j_client import create_neo4j_driver
        return Neo4jGraphStore(create_neo4j_driver(), database=os.getenv("NEO4J_DATABASE") or None)

    raise ValueError(f"Unknown GRAPH_BACKEND: {backend}")
