# File: api/routers/star_map.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies.auth import get_current_user_id
from api.dependencies.engine import get_knowledge_engine
from api.models.knowledge_models import StarMapResponse
from services.knowledge.engine import KnowledgeEngine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/star-map", response_model=StarMapResponse)
def get_star_map(
    user_id: str = Depends(get_current_user_id),
    engine: KnowledgeEngine = Depends(get_knowledge_engine),
):
    try:
        graph = engine.star_map(user_id)
    except Exception as e:
        logger.error(f"Star map error: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=503, detail="Failed to load star map")
    return StarMapResponse(nodes=graph["nodes"], links=graph["links"])
