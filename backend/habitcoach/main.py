import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habitcoach.config import get_settings
from habitcoach.database import create_tables, engine
from habitcoach.services.progression_config import load_progression_config_from_yaml
from habitcoach.services.score_blender import ScoreCache

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.progression_config_path:
        load_progression_config_from_yaml(settings.progression_config_path)
        logger.info("Loaded progression config", extra={"path": settings.progression_config_path})

    # Create tables on startup
    await create_tables(engine)

    # One score memo per process, shared by all requests
    app.state.score_cache = ScoreCache()
    yield
    # Cleanup on shutdown
    await engine.dispose()


app = FastAPI(
    title="Habit Coach Progression API",
    description="Weekly assessments and progression decisions for the 90-day habit program",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.environment}


# API routers
from habitcoach.api.v1.router import api_router

app.include_router(api_router, prefix="/api/v1")
