# File: api/routers/wiki.py
from fastapi import APIRouter, Depends

from api.dependencies.auth import get_current_user_id
from api.dependencies.engine import get_knowledge_engine, to_http_exception
from api.models.knowledge_models import WikiRequest, WikiResponse
from services.knowledge.engine import KnowledgeEngine
from services.knowledge.errors import KnowledgeEngineError

router = APIRouter()


@router.post("/wiki", response_model=WikiResponse)
def submit_wiki_article(
    request: WikiRequest,
    user_id: str = Depends(get_current_user_id),
    engine: KnowledgeEngine = Depends(get_knowledge_engine),
):
    try:
        topic_id = engine.submit_article(request.title, request.content, request.language)
    except KnowledgeEngineError as e:
        raise to_http_exception(e)
    return WikiResponse(success=True, topic_id=topic_id)
