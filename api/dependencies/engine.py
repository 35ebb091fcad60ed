import logging

from fastapi import HTTPException, Request, status

from services.knowledge.engine import KnowledgeEngine
from services.knowledge.errors import (
    InvalidQuery,
    KnowledgeEngineError,
    TopicLocked,
    TopicNotFound,
)

logger = logging.getLogger(__name__)


def get_knowledge_engine(request: Request) -> KnowledgeEngine:
    return request.app.state.knowledge_engine


def to_http_exception(error: KnowledgeEngineError) -> HTTPException:
    """Map an engine failure onto a status code; transient failures are retryable 503s."""
    if isinstance(error, InvalidQuery):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, TopicNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, TopicLocked):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))

    logger.error(f"Knowledge engine failure: {type(error).__name__}: {error}")
    if error.transient:
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Knowledge service temporarily unavailable")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Knowledge service failure")
