"""
Pulse FastAPI Application
=========================

REST API behind the Pulse review dashboards.

Endpoints:
    GET  /api/health              - Health check
    POST /api/upload/groups       - Location cards from a review export
    POST /api/analyses/aggregate  - Analyses dashboard rollup
    POST /api/analyze-text        - LLM analysis of free text

Usage:
    uvicorn src.api.main:app --reload --port 8000

    Or with CLI:
    python -m src.api.main
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from src.data.config import get_settings
from src.orchestrator.logging_config import configure_from_settings

from .models import HealthResponse
from .review_routes import router as review_router, get_repository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_from_settings()
    logger.info("Starting Pulse API...")

    yield

    repository = get_repository()
    if hasattr(repository, "close"):
        repository.close()
    logger.info("Shutting down Pulse API...")


app = FastAPI(
    title="Pulse API",
    description="Review sentiment dashboards - locations, analyses, competitors",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
# In production, set CORS_ORIGINS env var (comma-separated)
_default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra_origins = os.getenv("CORS_ORIGINS", "")
if _extra_origins:
    _default_origins.extend([o.strip() for o in _extra_origins.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=_default_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(review_router)


@app.get("/api/health", response_model=HealthResponse)
async def health(repository=Depends(get_repository)):
    """Health check with database status."""
    settings = get_settings()
    if hasattr(repository, "check_health"):
        database = repository.check_health()
    else:
        database = {"status": "memory", "records": len(repository)}

    return HealthResponse(
        status="ok",
        version=settings.app_version,
        database=database,
        llm_enabled=settings.llm.enabled,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=False,
    )
