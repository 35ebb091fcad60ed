# services/knowledge/ghost_merge.py
import logging
from typing import Iterable

from services.graph_store import GraphTransaction

logger = logging.getLogger(__name__)


def merge_ghost_aliases(graph_tx: GraphTransaction, canonical_name: str, aliases: Iterable[str]) -> int:
    """
    Fold ghost nodes created under alias names (the user's query, the
    generator's short topic name) into the canonical Topic node.

    Must run inside the same graph transaction as the article sync so no
    reader sees both nodes. An alias equal to the canonical name, ignoring
    case, is skipped.
    """
    folded = 0
    seen = set()
    canonical_name = canonical_name.strip()
    canonical_key = canonical_name.lower()

    for alias in aliases:
        alias = (alias or "").strip()
        key = alias.lower()
        if not alias or key == canonical_key or key in seen:
            continue
        seen.add(key)

        count = graph_tx.fold_node_into(alias, canonical_name)
        if count:
            logger.info(f"👻 Folded {count} ghost node(s) '{alias}' into '{canonical_name}'")
        folded += count

    return folded
