# services/knowledge/discovery_log.py
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from database.models.knowledge_model import DiscoveryRecord, Topic
from database.upsert import dialect_insert
from services.knowledge.errors import DiscoveryLogFailure

logger = logging.getLogger(__name__)


def record_discovery(session_factory: sessionmaker, user_id: str, topic_id: str, now: Optional[datetime] = None):
    """
    Upsert (user_id, topic_id), refreshing discovered_at on repeat visits.

    Raises:
        DiscoveryLogFailure: wraps any store error; callers decide whether to swallow it.
    """
    now = now or datetime.now(timezone.utc)

    with session_factory() as db:
        try:
            stmt = dialect_insert(db, DiscoveryRecord.__table__).values(
                user_id=user_id,
                topic_id=topic_id,
                discovered_at=now,
            ).on_conflict_do_update(
                index_elements=["user_id", "topic_id"],
                set_={"discovered_at": now},
            )
            db.execute(stmt)
            db.commit()
        except Exception as e:
            db.rollback()
            raise DiscoveryLogFailure(f"Failed to record discovery of {topic_id} for {user_id}: {e}") from e


def has_discovered(db: Session, user_id: str, topic_id: str) -> bool:
    return db.scalar(
        select(DiscoveryRecord.id).where(
            DiscoveryRecord.user_id == user_id,
            DiscoveryRecord.topic_id == topic_id,
        )
    ) is not None


def list_discoveries(db: Session, user_id: str) -> List[Dict]:
    """The user's ship log, most recent discovery first."""
    rows = db.execute(
        select(DiscoveryRecord, Topic)
        .join(Topic, DiscoveryRecord.topic_id == Topic.id)
        .where(DiscoveryRecord.user_id == user_id)
        .order_by(DiscoveryRecord.discovered_at.desc())
    ).all()

    return [
        {
            "id": record.id,
            "topic_id": record.topic_id,
            "name": topic.name,
            "discovered_at": record.discovered_at,
            "last_updated": topic.updated_at,
        }
        for record, topic in rows
    ]
