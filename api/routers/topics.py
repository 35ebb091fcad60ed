# File: api/routers/topics.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies.auth import get_current_user_id
from api.dependencies.engine import get_knowledge_engine, to_http_exception
from api.models.knowledge_models import TopicResponse
from services.knowledge.engine import KnowledgeEngine
from services.knowledge.errors import KnowledgeEngineError

router = APIRouter()


@router.get("/topic", response_model=TopicResponse)
def get_topic(
    id: Optional[str] = Query(default=None),
    name: Optional[str] = Query(default=None),
    lang: str = Query(default="en"),
    user_id: str = Depends(get_current_user_id),
    engine: KnowledgeEngine = Depends(get_knowledge_engine),
):
    try:
        view = engine.read_topic(user_id, topic_id=id, name=name, language=lang)
    except KnowledgeEngineError as e:
        raise to_http_exception(e)

    return TopicResponse(
        id=view.id,
        name=view.name,
        content=view.content,
        language=view.language,
        updated_at=view.updated_at,
        tags=view.tags,
    )
