# services/knowledge/resolver.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from database.models.knowledge_model import Topic, Article, Alias
from utils.sanitization import clean_query, normalize_topic_name, squash_name

logger = logging.getLogger(__name__)


@dataclass
class ArticleView:
    language: str
    title: Optional[str]
    content: str
    updated_at: Optional[datetime]


@dataclass
class TopicMatch:
    topic_id: str
    name: str
    tags: List[str] = field(default_factory=list)
    article: Optional[ArticleView] = None
    via_alias: Optional[str] = None


def resolve_topic(db: Session, query: str, language: str) -> Optional[TopicMatch]:
    """
    Two-tier lookup: canonical name (trimmed, lower-cased) first, then the
    alias table with the trimmed query exactly as typed.
    Returns None on a miss.
    """
    raw = clean_query(query)
    if not raw:
        return None

    topic = db.scalar(select(Topic).where(Topic.name == normalize_topic_name(raw)))
    via_alias = None

    if topic is None:
        alias = db.scalar(select(Alias).where(Alias.name == raw))
        if alias is None:
            return None
        topic = alias.topic
        via_alias = alias.name

    return _to_match(db, topic, language, via_alias)


def resolve_canonical(db: Session, name: str, language: str) -> Optional[TopicMatch]:
    topic = db.scalar(select(Topic).where(Topic.name == normalize_topic_name(name)))
    if topic is None:
        return None
    return _to_match(db, topic, language)


def resolve_topic_by_id(db: Session, topic_id: str, language: str) -> Optional[TopicMatch]:
    topic = db.get(Topic, topic_id)
    if topic is None:
        return None
    return _to_match(db, topic, language)


def _to_match(db: Session, topic: Topic, language: str, via_alias: Optional[str] = None) -> TopicMatch:
    article = db.scalar(
        select(Article).where(Article.topic_id == topic.id, Article.language == language)
    )
    view = None
    if article is not None:
        view = ArticleView(
            language=article.language,
            title=article.title,
            content=article.content or "",
            updated_at=article.updated_at,
        )
    return TopicMatch(
        topic_id=topic.id,
        name=topic.name,
        tags=sorted(tag.name for tag in topic.tags),
        article=view,
        via_alias=via_alias,
    )


def load_keyword_index(db: Session) -> List[str]:
    """Every Topic name and Alias name; the auto-linker's vocabulary."""
    names = list(db.scalars(select(Topic.name)))
    names.extend(db.scalars(select(Alias.name)))
    return names


def build_name_map(db: Session) -> Dict[str, str]:
    """
    Surface form -> canonical Topic name.
    Keys are registered both lower-cased and with whitespace removed.
    """
    name_map: Dict[str, str] = {}

    def _add(key: str, value: str):
        name_map[key.lower()] = value
        name_map[squash_name(key)] = value

    for name in db.scalars(select(Topic.name)):
        _add(name, name.lower())

    rows = db.execute(select(Alias.name, Topic.name).join(Topic, Alias.topic_id == Topic.id))
    for alias_name, topic_name in rows:
        _add(alias_name, topic_name.lower())

    return name_map


def resolve_linked_names(name_map: Dict[str, str], linked: List[str], exclude: Optional[str] = None) -> List[str]:
    """Map [[...]] targets onto canonical names, keeping first-seen order."""
    resolved: List[str] = []
    for keyword in linked:
        lower = keyword.strip().lower()
        name = name_map.get(lower) or name_map.get(squash_name(lower)) or keyword.strip()
        if not name or (exclude and name.lower() == exclude.lower()):
            continue
        if name not in resolved:
            resolved.append(name)
    return resolved
