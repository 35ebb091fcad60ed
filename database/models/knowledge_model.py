# database/models/knowledge_model.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Table, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_topic_id() -> str:
    return str(uuid.uuid4())


topic_tags = Table(
    "topic_tags",
    Base.metadata,
    Column("topic_id", String(36), ForeignKey("topics.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Topic(Base):
    """
    Canonical knowledge entity. `name` is the lower-cased canonical name and
    never changes once set; other surface forms live in `aliases`.
    """
    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, default=new_topic_id)
    name = Column(String(255), unique=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    tags = relationship("Tag", secondary=topic_tags, back_populates="topics")
    articles = relationship("Article", back_populates="topic", cascade="all, delete-orphan")
    aliases = relationship("Alias", back_populates="topic", cascade="all, delete-orphan")


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        UniqueConstraint("topic_id", "language", name="uq_article_topic_language"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    topic_id = Column(String(36), ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    language = Column(String(16), nullable=False, default="en")

    title = Column(String(500), nullable=True)
    content = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False) # Freshness timestamp

    topic = relationship("Topic", back_populates="articles")


class Alias(Base):
    __tablename__ = "aliases"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True) # Stored as typed, not lower-cased
    topic_id = Column(String(36), ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)

    topic = relationship("Topic", back_populates="aliases")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    topics = relationship("Topic", secondary=topic_tags, back_populates="tags")


class DiscoveryRecord(Base):
    """
    Per-user ship log: the fact that a user has seen a Topic.
    Repeat access refreshes `discovered_at` instead of adding rows.
    """
    __tablename__ = "discovery_records"
    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_discovery_user_topic"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    topic_id = Column(String(36), ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    discovered_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    topic = relationship("Topic")
