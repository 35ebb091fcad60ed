# services/knowledge/reconcile.py
import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from database.models.knowledge_model import Topic
from services.graph_store import GraphStore

logger = logging.getLogger(__name__)


def find_orphans(db: Session, graph_store: GraphStore) -> List[Dict]:
    """
    Non-ghost Topic nodes with no Topic row behind them.
    These are left behind when the content commit fails after the graph commit.
    """
    known = set(db.scalars(select(Topic.name)))
    return [
        node for node in graph_store.topic_nodes()
        if not node.get("ghost") and node["name"] not in known
    ]


def sync_topic_ids(db: Session, graph_store: GraphStore) -> int:
    """Rewrite topicId back-references from the content store, matched by name."""
    nodes = {node["name"]: node for node in graph_store.topic_nodes()}
    updated = 0
    for topic_id, name in db.execute(select(Topic.id, Topic.name)):
        node = nodes.get(name)
        if node is None or (node.get("topicId") == topic_id and not node.get("ghost")):
            continue
        updated += graph_store.set_topic_id(name, topic_id)

    logger.info(f"🔁 Re-synced topicId on {updated} graph node(s)")
    return updated
