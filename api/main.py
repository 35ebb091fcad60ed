# api/main.py
from dotenv import load_dotenv
import os

env = os.getenv("APP_ENV", "local")
if env == "local":
    load_dotenv(".env.local")
else:
    load_dotenv(".env")

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from fastapi.middleware.cors import CORSMiddleware

from database.db import create_db_engine, init_db, make_session_factory
from services.graph_store import build_graph_store
from services.knowledge.engine import KnowledgeEngine
from services.llm_service import generate_topic_payload

from api.routers import (
    health,
    chat,
    topics,
    wiki,
    ship_log,
    star_map,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)
logger.info(f"🔧 Loaded environment: {env}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Knowledge Engine: initializing stores")
    try:
        engine = create_db_engine()
        init_db(engine)
        graph_store = build_graph_store()
    except Exception as e:
        logger.error(f"❌ Failed to initialize stores: {e}", exc_info=True)
        raise

    app.state.knowledge_engine = KnowledgeEngine(
        session_factory=make_session_factory(engine),
        graph_store=graph_store,
        generator=generate_topic_payload,
    )
    yield
    logger.info("🛑 Shutting down Knowledge Engine")
    graph_store.close()
    engine.dispose()


app = FastAPI(
    title="Knowledge Synthesis Engine API",
    version="1.0.0",
    description="Resolves questions to concept articles and maps them into a concept graph.",
    lifespan=lifespan
)

# CORS Configuration
origins = []
if env == "local":
    origins = ["http://localhost:3000", "http://localhost:5173"]
else:
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(chat.router, tags=["Chat"])
app.include_router(topics.router, tags=["Topics"])
app.include_router(wiki.router, tags=["Wiki"])
app.include_router(ship_log.router, tags=["Ship Log"])
app.include_router(star_map.router, tags=["Star Map"])


@app.get("/")
async def root():
    return {"message": "Knowledge Engine Running Successfully 🚀"}
