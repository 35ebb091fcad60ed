# services/knowledge/content_store.py
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from database.models.knowledge_model import Topic, Article, Alias, Tag, topic_tags, new_topic_id
from database.upsert import dialect_insert


def upsert_topic(db: Session, name: str, tags: Iterable[str], now: datetime) -> str:
    """Insert the Topic if its canonical name is new, then attach tags. Returns the topic id."""
    stmt = dialect_insert(db, Topic.__table__).values(
        id=new_topic_id(),
        name=name,
        created_at=now,
        updated_at=now,
    ).on_conflict_do_update(
        index_elements=["name"],
        set_={"updated_at": now},
    )
    db.execute(stmt)

    topic_id = db.scalar(select(Topic.id).where(Topic.name == name))
    attach_tags(db, topic_id, tags)
    return topic_id


def attach_tags(db: Session, topic_id: str, tags: Iterable[str]):
    names: List[str] = [tag for tag in dict.fromkeys(tags) if tag]
    if not names:
        return

    for name in names:
        db.execute(
            dialect_insert(db, Tag.__table__).values(name=name).on_conflict_do_nothing(index_elements=["name"])
        )

    for tag_id in db.scalars(select(Tag.id).where(Tag.name.in_(names))):
        db.execute(
            dialect_insert(db, topic_tags)
            .values(topic_id=topic_id, tag_id=tag_id)
            .on_conflict_do_nothing(index_elements=["topic_id", "tag_id"])
        )


def upsert_article(db: Session, topic_id: str, language: str, title: Optional[str], content: str, now: datetime):
    stmt = dialect_insert(db, Article.__table__).values(
        topic_id=topic_id,
        language=language,
        title=title,
        content=content,
        created_at=now,
        updated_at=now,
    ).on_conflict_do_update(
        index_elements=["topic_id", "language"],
        set_={"title": title, "content": content, "updated_at": now},
    )
    db.execute(stmt)


def add_alias(db: Session, name: str, topic_id: str) -> bool:
    """Best-effort alias insert; an existing alias of the same name is left untouched."""
    result = db.execute(
        dialect_insert(db, Alias.__table__)
        .values(name=name, topic_id=topic_id)
        .on_conflict_do_nothing(index_elements=["name"])
    )
    return result.rowcount == 1


def alias_candidates(canonical_name: str, names: Iterable[Optional[str]]) -> List[str]:
    """Surface forms that differ from the canonical name, de-duplicated, as typed."""
    aliases: List[str] = []
    for name in names:
        name = (name or "").strip()
        if name and name.lower() != canonical_name and name not in aliases:
            aliases.append(name)
    return aliases
