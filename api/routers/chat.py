# File: api/routers/chat.py
import logging

from fastapi import APIRouter, Depends

from api.dependencies.auth import get_current_user_id
from api.dependencies.engine import get_knowledge_engine, to_http_exception
from api.models.knowledge_models import ChatRequest, ChatResponse
from services.knowledge.engine import KnowledgeEngine
from services.knowledge.errors import KnowledgeEngineError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    engine: KnowledgeEngine = Depends(get_knowledge_engine),
):
    try:
        result = engine.resolve_or_synthesize(user_id, request.message, request.language)
    except KnowledgeEngineError as e:
        raise to_http_exception(e)

    return ChatResponse(
        answer=result.answer_text,
        content=result.article_content,
        is_new=result.is_newly_generated,
        topic_id=result.topic_id,
    )
