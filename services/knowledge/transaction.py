# services/knowledge/transaction.py
"""
Saga across the relational content store and the graph store.

1. Begin a graph transaction.
2. Open a relational session.
3. Run the business logic with both handles.
4. Success: flush SQL, commit the graph first, then commit SQL.
5. Failure before the graph commit: roll back both and raise SagaAborted.

If the SQL commit fails after the graph commit, the graph keeps nodes with
no matching Topic row ("ghost by design"). This is accepted debt and is
repaired administratively (scripts/reconcile_graph.py), never automatically.
"""
import logging
from typing import Callable, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from services.graph_store import GraphStore, GraphTransaction
from services.knowledge.errors import SagaAborted

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DualStoreCoordinator:
    def __init__(self, session_factory: sessionmaker, graph_store: GraphStore):
        self._session_factory = session_factory
        self._graph_store = graph_store

    def run(self, work: Callable[[Session, GraphTransaction], T], label: str = "dual-store write") -> T:
        graph_tx = self._graph_store.begin_transaction()
        db = self._session_factory()
        graph_committed = False

        try:
            result = work(db, graph_tx)
            db.flush()

            graph_tx.commit()
            graph_committed = True

            db.commit()
            return result

        except Exception as e:
            if graph_committed:
                logger.warning(
                    f"⚠️ {label}: graph committed but content store commit failed; "
                    f"graph now holds nodes without content rows: {e}"
                )
            else:
                self._rollback_graph(graph_tx, label)
            db.rollback()
            raise SagaAborted(f"{label} aborted: {e}", graph_committed=graph_committed) from e

        finally:
            try:
                graph_tx.close()
            finally:
                db.close()

    @staticmethod
    def _rollback_graph(graph_tx: GraphTransaction, label: str):
        try:
            graph_tx.rollback()
        except Exception as e:
            logger.error(f"{label}: graph rollback failed: {e}", exc_info=True)
