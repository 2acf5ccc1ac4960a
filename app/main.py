"""
Main FastAPI application for the Match Analytics API.
"""
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db, init_db
from app.core.logging import configure_logging, get_logger
from app.core.middleware import CorrelationIdMiddleware
from app.api.routes import ingest, matches, players
from app.services.reference_data import ReferenceDataCache

# Load environment variables from .env file
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    missing = settings.validate_required_secrets()
    if missing:
        logger.warning(f"Missing required settings for {settings.ENVIRONMENT}: {', '.join(missing)}")

    init_db()

    # Fetched in the background; lookups serve fallback data until it lands
    reference_data = ReferenceDataCache()
    app.state.reference_data = reference_data
    refresh_task = asyncio.create_task(reference_data.refresh())
    logger.info("Application started")

    yield

    # Shutdown
    refresh_task.cancel()
    await reference_data.close()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Match ingestion and analytics for tactical shooter telemetry dumps",
    lifespan=lifespan,
)

# Add correlation ID middleware (must be added before CORS for proper header handling)
app.add_middleware(CorrelationIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API v1
app.include_router(ingest.router, prefix="/api/v1")
app.include_router(matches.router, prefix="/api/v1")
app.include_router(players.router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "api_version": "v1",
            "ingest": "/api/v1/ingest",
            "upload": "/api/v1/upload",
            "matches": "/api/v1/matches/{match_id}",
            "tags": "/api/v1/tags",
            "players": "/api/v1/players/{puuid}",
            "docs": "/docs",
            "health": "/health",
        },
    }


@app.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    """Health check with database connectivity and reference data freshness."""
    health = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "components": {},
    }

    try:
        db.execute(text("SELECT 1"))
        health["components"]["database"] = {"status": "connected"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        health["components"]["database"] = {"status": "unhealthy", "error": str(e)}
        health["status"] = "degraded"

    reference_data = getattr(request.app.state, "reference_data", None)
    health["components"]["reference_data"] = {
        "status": "fresh" if reference_data and reference_data.is_fresh() else "fallback",
    }
    return health


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
