# services/memory_graph_store.py
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import networkx as nx

from services.graph_store import GraphStore, GraphTransaction

logger = logging.getLogger(__name__)

TOPIC = "Topic"
TAG = "Tag"
MENTIONS = "MENTIONS"
TAGGED = "TAGGED"

NodeKey = Tuple[str, str]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _merge_node(g: nx.DiGraph, label: str, name: str, **on_create) -> NodeKey:
    key = (label, name)
    if key not in g:
        g.add_node(key, label=label, name=name, createdAt=_now(), **on_create)
    return key


def _merge_edge(g: nx.DiGraph, source: NodeKey, target: NodeKey, rel_type: str):
    if not g.has_edge(source, target):
        g.add_edge(source, target, type=rel_type, createdAt=_now())


def _merge_topic_node(g: nx.DiGraph, name: str, topic_id: Optional[str]) -> None:
    key = _merge_node(g, TOPIC, name, visits=0)
    g.nodes[key].update(topicId=topic_id, ghost=False, updatedAt=_now())


def _merge_mentions(g: nx.DiGraph, source: str, targets: List[str]) -> None:
    main = (TOPIC, source)
    if main not in g:
        return
    for target in targets:
        _merge_edge(g, main, _merge_node(g, TOPIC, target, ghost=True), MENTIONS)


def _merge_tags(g: nx.DiGraph, source: str, tags: List[str]) -> None:
    main = (TOPIC, source)
    if main not in g:
        return
    for tag in tags:
        _merge_edge(g, main, _merge_node(g, TAG, tag), TAGGED)


def _fold_node_into(g: nx.DiGraph, alias: str, canonical: str) -> int:
    main = (TOPIC, canonical)
    if main not in g:
        return 0

    wanted = alias.lower()
    ghosts = [
        key for key, data in g.nodes(data=True)
        if key != main
        and data.get("label") == TOPIC
        and data.get("name", "").lower() == wanted
        and data.get("ghost", False)
    ]

    for ghost in ghosts:
        for src in list(g.predecessors(ghost)):
            if g.edges[src, ghost].get("type") == MENTIONS and src not in (main, ghost):
                _merge_edge(g, src, main, MENTIONS)
        for dst in list(g.successors(ghost)):
            rel_type = g.edges[ghost, dst].get("type")
            if dst in (main, ghost):
                continue
            if rel_type in (MENTIONS, TAGGED):
                _merge_edge(g, main, dst, rel_type)
        g.remove_node(ghost)

    return len(ghosts)


class MemoryGraphTransaction(GraphTransaction):
    """
    Operations are applied to a private copy for reads inside the transaction
    and logged. Commit replays the log against the live graph under the store
    lock, so concurrent transactions on other topics are never overwritten.
    Rollback drops the copy and the log.
    """

    def __init__(self, store: "MemoryGraphStore"):
        self._store = store
        self._graph: nx.DiGraph = store.snapshot()
        self._ops: List[Tuple[Callable, tuple]] = []
        self._closed = False

    def _apply(self, op: Callable, *args):
        if self._closed:
            raise RuntimeError("Graph transaction is already closed")
        self._ops.append((op, args))
        return op(self._graph, *args)

    def merge_topic_node(self, name: str, topic_id: Optional[str]) -> None:
        self._apply(_merge_topic_node, name, topic_id)

    def merge_mentions(self, source: str, targets: List[str]) -> None:
        self._apply(_merge_mentions, source, list(targets))

    def merge_tags(self, source: str, tags: List[str]) -> None:
        self._apply(_merge_tags, source, list(tags))

    def fold_node_into(self, alias: str, canonical: str) -> int:
        return self._apply(_fold_node_into, alias, canonical)

    def commit(self) -> None:
        if self._closed:
            raise RuntimeError("Graph transaction is already closed")
        self._store.apply(self._ops)
        self._closed = True

    def rollback(self) -> None:
        self._ops = []
        self._closed = True

    def close(self) -> None:
        self._closed = True


class MemoryGraphStore(GraphStore):
    def __init__(self, graph: Optional[nx.DiGraph] = None):
        self._graph = graph if graph is not None else nx.DiGraph()
        self._lock = threading.Lock()

    @property
    def graph(self) -> nx.DiGraph:
        return self._graph

    def snapshot(self) -> nx.DiGraph:
        with self._lock:
            return self._graph.copy()

    def replace(self, graph: nx.DiGraph) -> None:
        with self._lock:
            self._graph = graph

    def apply(self, ops: List[Tuple[Callable, tuple]]) -> None:
        """Replay a committed transaction's operations against the live graph."""
        with self._lock:
            for op, args in ops:
                op(self._graph, *args)

    def begin_transaction(self) -> GraphTransaction:
        return MemoryGraphTransaction(self)

    def has_topic(self, name: str) -> bool:
        return (TOPIC, name) in self._graph

    def node(self, name: str) -> Dict[str, Any]:
        return dict(self._graph.nodes[(TOPIC, name)])

    def edges_of(self, name: str) -> List[Tuple[str, str, str]]:
        """(source name, relation, target name) for every edge touching a Topic node."""
        key = (TOPIC, name)
        g = self._graph
        edges = [(src[1], data["type"], dst[1]) for src, dst, data in g.in_edges(key, data=True)]
        edges.extend((src[1], data["type"], dst[1]) for src, dst, data in g.out_edges(key, data=True))
        return edges

    def neighborhood(self, names: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        g = self.snapshot()
        nodes: Dict[str, Dict[str, Any]] = {}
        links: List[Dict[str, Any]] = []

        for name in names:
            key = (TOPIC, name)
            if key not in g:
                continue
            nodes.setdefault(_node_id(key), _node_dict(key, g.nodes[key]))
            for src, dst, data in list(g.out_edges(key, data=True)) + list(g.in_edges(key, data=True)):
                other = dst if src == key else src
                if g.nodes[other].get("label") != TOPIC:
                    continue
                nodes.setdefault(_node_id(other), _node_dict(other, g.nodes[other]))
                links.append({"source": _node_id(src), "target": _node_id(dst), "type": data.get("type")})

        return {"nodes": list(nodes.values()), "links": links}

    def topic_nodes(self) -> List[Dict[str, Any]]:
        return [
            {"name": data["name"], "topicId": data.get("topicId"), "ghost": bool(data.get("ghost", False))}
            for key, data in self.snapshot().nodes(data=True)
            if data.get("label") == TOPIC
        ]

    def set_topic_id(self, name: str, topic_id: str) -> int:
        with self._lock:
            key = (TOPIC, name)
            if key not in self._graph:
                return 0
            self._graph.nodes[key].update(topicId=topic_id, ghost=False)
            return 1

    def reset(self) -> None:
        self.replace(nx.DiGraph())


def _node_id(key: NodeKey) -> str:
    return f"{key[0]}:{key[1]}"


def _node_dict(key: NodeKey, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": _node_id(key),
        "name": data.get("name"),
        "ghost": bool(data.get("ghost", False)),
        "topicId": data.get("topicId"),
    }
