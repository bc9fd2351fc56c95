from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.factory import get_adapter
from api.routes import router
from bootstrap.sample_data import seed_sample_data
from utils.config import get_settings
from utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("startup", db_engine=settings.db_engine, llm_provider=settings.llm_provider)
    if settings.seed_sample_data:
        seed_sample_data(get_adapter(settings=settings))
    yield
    logger.info("shutdown")


app = FastAPI(
    title="QueryMind API",
    version="0.1.0",
    description="Natural language to SQL: schema introspection, LLM generation with heuristic fallback, read-only execution",
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.include_router(router)
