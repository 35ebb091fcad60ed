# File: api/routers/health.py
import os

from fastapi import APIRouter


router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "graph_backend": os.getenv("GRAPH_BACKEND", "neo4j")}
