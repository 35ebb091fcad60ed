# File: api/models/knowledge_models.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ChatRequest(BaseModel):
    message: str
    language: str = "en"


class ChatResponse(BaseModel):
    answer: str
    content: str
    is_new: bool
    topic_id: str


class TopicResponse(BaseModel):
    id: str
    name: str
    content: str
    language: str
    updated_at: Optional[datetime] = None
    tags: List[str] = []


class WikiRequest(BaseModel):
    title: str
    content: str
    language: str = "en"


class WikiResponse(BaseModel):
    success: bool
    topic_id: str


class ShipLogEntry(BaseModel):
    id: int
    topic_id: str
    name: str
    discovered_at: datetime
    last_updated: Optional[datetime] = None


class StarMapResponse(BaseModel):
    nodes: List[Dict[str, Any]]
    links: List[Dict[str, Any]]
