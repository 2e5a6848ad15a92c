from fastapi import APIRouter

from habitcoach.api.v1 import (
    program,
    daily_metrics,
    assessments,
    progression,
    score,
)

api_router = APIRouter()

api_router.include_router(program.router, prefix="/program", tags=["program"])
api_router.include_router(daily_metrics.router, prefix="/daily-metrics", tags=["daily-metrics"])
api_router.include_router(assessments.router, prefix="/assessments", tags=["assessments"])
api_router.include_router(progression.router, prefix="/progression", tags=["progression"])
api_router.include_router(score.router, prefix="/score", tags=["score"])
