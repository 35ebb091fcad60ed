# services/knowledge/engine.py
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from services.graph_store import GraphStore
from services.knowledge.auto_linker import AutoLinker, extract_links, normalize_markdown_links
from services.knowledge.content_store import add_alias, alias_candidates, upsert_article, upsert_topic
from services.knowledge.discovery_log import has_discovered, list_discoveries, record_discovery
from services.knowledge.errors import (
    GeneratorUnavailable,
    InvalidQuery,
    KnowledgeEngineError,
    TopicLocked,
    TopicNotFound,
)
from services.knowledge.ghost_merge import merge_ghost_aliases
from services.knowledge.graph_sync import sync_article_to_graph
from services.knowledge.normalizer import normalize_generator_output
from services.knowledge.prompts import UNKNOWN_TOPIC
from services.knowledge.resolver import (
    TopicMatch,
    build_name_map,
    load_keyword_index,
    resolve_canonical,
    resolve_linked_names,
    resolve_topic,
    resolve_topic_by_id,
)
from services.knowledge.staleness import staleness_reason
from services.knowledge.star_map import build_star_map
from services.knowledge.transaction import DualStoreCoordinator
from utils.sanitization import clean_query, normalize_topic_name

logger = logging.getLogger(__name__)

Generator = Callable[[str, str], str]

ARCHIVE_BANNERS = {
    "en": '**[ARCHIVE RETRIEVED]**\n\nRecords on *"{name}"* were found in the archive.',
    "ko": '**[ARCHIVE RETRIEVED]**\n\n기록 보관소에서 *"{name}"*에 대한 데이터를 찾았습니다.',
}

SEPARATOR = "\n\n---\n\n"


@dataclass
class SynthesisResult:
    answer_text: str
    article_content: str
    is_newly_generated: bool
    topic_id: str


@dataclass
class TopicView:
    id: str
    name: str
    content: str
    language: str
    updated_at: Optional[datetime]
    tags: List[str] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def archive_answer(name: str, content: str, language: str) -> str:
    banner = ARCHIVE_BANNERS.get(language, ARCHIVE_BANNERS["en"]).format(name=name)
    return f"{banner}{SEPARATOR}{content}"


class KnowledgeEngine:
    """
    Resolve a query to a Topic, serve fresh cached content or synthesize new
    content, keep both stores in step and log the user's discovery.

    All collaborators are injected; the engine holds no store handles of its own.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        graph_store: GraphStore,
        generator: Generator,
        clock: Callable[[], datetime] = _utcnow,
        window_months: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self._graph_store = graph_store
        self._generator = generator
        self._clock = clock
        self._window_months = window_months
        self._coordinator = DualStoreCoordinator(session_factory, graph_store)

    # ------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------
    def resolve_or_synthesize(self, user_id: str, query: str, language: str = "en") -> SynthesisResult:
        query_text = clean_query(query)
        if not query_text:
            raise InvalidQuery("Query must not be empty")
        language = (language or "en").strip().lower()
        now = self._clock()

        with self._session_factory() as db:
            match = resolve_topic(db, query_text, language)

        reason = staleness_reason(match, now, self._window_months)
        if reason is None:
            logger.info(f"📚 Archive hit for '{query_text}' ({language}) -> {match.name}")
            content = match.article.content
            result = SynthesisResult(
                answer_text=archive_answer(match.name, content, language),
                article_content=content,
                is_newly_generated=False,
                topic_id=match.topic_id,
            )
        else:
            logger.info(f"✨ Generating content for '{query_text}' ({language}): {reason}")
            result = self._synthesize(query_text, language, now)

        if result.topic_id:
            self._record_discovery(user_id, result.topic_id, now)

        return result

    def _synthesize(self, query_text: str, language: str, now: datetime) -> SynthesisResult:
        try:
            raw = self._generator(query_text, language)
        except KnowledgeEngineError:
            raise
        except Exception as e:
            logger.error(f"Content generator failed: {e}", exc_info=True)
            raise GeneratorUnavailable(f"Failed to generate content: {e}") from e

        generated = normalize_generator_output(raw)
        content = normalize_markdown_links(generated.content)
        answer = normalize_markdown_links(generated.chat_response)

        if generated.topic.strip().lower() == UNKNOWN_TOPIC.lower():
            logger.info(f"Query '{query_text}' is not about a concept; nothing persisted")
            return SynthesisResult(answer_text=answer, article_content=content, is_newly_generated=False, topic_id="")

        canonical = normalize_topic_name(generated.canonical_name) or normalize_topic_name(generated.topic)
        extracted = clean_query(generated.topic)
        title = generated.title or extracted
        tags = generated.tags

        with self._session_factory() as db:
            linker = AutoLinker(load_keyword_index(db))
        content = linker.link(content)
        answer = linker.link(answer)

        aliases = alias_candidates(canonical, [query_text, extracted])

        def _persist(db, graph_tx) -> str:
            topic_id = upsert_topic(db, canonical, tags, now)
            upsert_article(db, topic_id, language, title, content, now)
            for alias in aliases:
                add_alias(db, alias, topic_id)

            linked = resolve_linked_names(build_name_map(db), extract_links(content), exclude=canonical)
            sync_article_to_graph(graph_tx, canonical, linked, tags, topic_id)
            merge_ghost_aliases(graph_tx, canonical, [query_text, extracted])
            return topic_id

        topic_id = self._coordinator.run(_persist, label=f"synthesis of '{canonical}'")

        answer = f"{answer}{SEPARATOR}{content}" if answer else content
        return SynthesisResult(answer_text=answer, article_content=content, is_newly_generated=True, topic_id=topic_id)

    def _record_discovery(self, user_id: str, topic_id: str, now: datetime):
        try:
            record_discovery(self._session_factory, user_id, topic_id, now)
        except Exception as e:
            # A lost ship-log entry must not discard a good answer
            logger.error(f"Ship log update failed for user {user_id}: {e}", exc_info=True)

    # ------------------------------------------------------------
    # Reader / manual submission
    # ------------------------------------------------------------
    def read_topic(
        self,
        user_id: str,
        topic_id: Optional[str] = None,
        name: Optional[str] = None,
        language: str = "en",
    ) -> TopicView:
        """
        Return a discovered topic in the requested language, generating the
        localized article on first access.
        """
        if not topic_id and not clean_query(name):
            raise InvalidQuery("Topic ID or name is required")
        language = (language or "en").strip().lower()

        with self._session_factory() as db:
            if topic_id:
                match = resolve_topic_by_id(db, topic_id, language)
            else:
                match = resolve_canonical(db, name, language)
            if match is None:
                raise TopicNotFound(f"Topic not found: {topic_id or name}")
            if not has_discovered(db, user_id, match.topic_id):
                raise TopicLocked(f"Topic '{match.name}' has not been discovered yet")

        if match.article is None or not match.article.content.strip():
            logger.info(f"🌐 No '{language}' article for '{match.name}', generating")
            self.resolve_or_synthesize(user_id, match.name, language)
            with self._session_factory() as db:
                refreshed = resolve_topic_by_id(db, match.topic_id, language)
            if refreshed is not None:
                match = refreshed

        return _to_view(match, language)

    def submit_article(self, title: str, content: str, language: str = "en") -> str:
        """Store a hand-written article and project its [[links]] into the graph."""
        display_title = clean_query(title)
        if not display_title or not (content or "").strip():
            raise InvalidQuery("Title and content are required")
        canonical = normalize_topic_name(display_title)
        language = (language or "en").strip().lower()
        now = self._clock()

        def _persist(db, graph_tx) -> str:
            topic_id = upsert_topic(db, canonical, [], now)
            upsert_article(db, topic_id, language, display_title, content, now)
            for alias in alias_candidates(canonical, [display_title]):
                add_alias(db, alias, topic_id)

            linked = resolve_linked_names(build_name_map(db), extract_links(content), exclude=canonical)
            sync_article_to_graph(graph_tx, canonical, linked, [], topic_id)
            merge_ghost_aliases(graph_tx, canonical, [display_title])
            return topic_id

        return self._coordinator.run(_persist, label=f"manual article '{canonical}'")

    # ------------------------------------------------------------
    # Ship log / star map
    # ------------------------------------------------------------
    def ship_log(self, user_id: str) -> List[Dict]:
        with self._session_factory() as db:
            return list_discoveries(db, user_id)

    def star_map(self, user_id: str) -> Dict:
        discovered = [entry["name"] for entry in self.ship_log(user_id)]
        if not discovered:
            return build_star_map({"nodes": [], "links": []}, [])
        return build_star_map(self._graph_store.neighborhood(discovered), discovered)


def _to_view(match: TopicMatch, language: str) -> TopicView:
    article = match.article
    return TopicView(
        id=match.topic_id,
        name=match.name,
        content=article.content if article else "",
        language=article.language if article else language,
        updated_at=article.updated_at if article else None,
        tags=match.tags,
    )
