# services/knowledge/graph_sync.py
import logging
from typing import List, Optional

from services.graph_store import GraphTransaction

logger = logging.getLogger(__name__)


def sync_article_to_graph(
    graph_tx: GraphTransaction,
    canonical_name: str,
    linked_names: List[str],
    tags: Optional[List[str]] = None,
    topic_id: Optional[str] = None,
) -> None:
    """
    Project one article into the graph: the Topic node, one MENTIONS edge per
    linked concept (unknown concepts become ghost nodes) and one TAGGED edge per tag.
    """
    mentions = [name for name in dict.fromkeys(linked_names) if name and name != canonical_name]
    tags = [tag for tag in dict.fromkeys(tags or []) if tag]

    graph_tx.merge_topic_node(canonical_name, topic_id)
    graph_tx.merge_mentions(canonical_name, mentions)
    graph_tx.merge_tags(canonical_name, tags)

    logger.info(f"🧠 Graph sync: '{canonical_name}' -> {len(mentions)} mentions, {len(tags)} tags")
