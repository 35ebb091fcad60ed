# File: api/routers/ship_log.py
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies.auth import get_current_user_id
from api.dependencies.engine import get_knowledge_engine
from api.models.knowledge_models import ShipLogEntry
from services.knowledge.engine import KnowledgeEngine

router = APIRouter()


@router.get("/ship-log", response_model=List[ShipLogEntry])
def get_ship_log(
    user_id: str = Depends(get_current_user_id),
    engine: KnowledgeEngine = Depends(get_knowledge_engine),
):
    return engine.ship_log(user_id)
