from datetime import date

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from habitcoach.api.deps import CurrentUser, DbSession, Store
from habitcoach.models import ProgramProgress
from habitcoach.schemas.program import ProgramProgressResponse, ProgramStart
from habitcoach.schemas.schedule import AssessmentScheduleResponse, ProgressionStatsResponse
from habitcoach.services.assessment_schedule import AssessmentScheduler

router = APIRouter()


@router.post("/start", response_model=ProgramProgressResponse, status_code=status.HTTP_201_CREATED)
async def start_program(
    program_in: ProgramStart,
    current_user: CurrentUser,
    db: DbSession,
) -> ProgramProgress:
    """Start the 90-day program at week 1."""
    result = await db.execute(select(ProgramProgress).where(ProgramProgress.user_id == current_user.id))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Program already started",
        )

    progress = ProgramProgress(
        user_id=current_user.id,
        current_week=1,
        current_phase=1,
        start_date=program_in.start_date or date.today(),
        week_extensions=0,
        progression_decisions=[],
    )
    db.add(progress)
    await db.commit()
    await db.refresh(progress)
    return progress


@router.get("", response_model=ProgramProgressResponse)
async def get_program(
    current_user: CurrentUser,
    db: DbSession,
) -> ProgramProgress:
    """Current week, phase and decision history."""
    result = await db.execute(select(ProgramProgress).where(ProgramProgress.user_id == current_user.id))
    progress = result.scalar_one_or_none()

    if not progress:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Program not started",
        )
    return progress


@router.get("/assessment-status", response_model=AssessmentScheduleResponse)
async def get_assessment_status(
    current_user: CurrentUser,
    store: Store,
    weeks_ahead: int = Query(4, ge=0, le=12),
) -> AssessmentScheduleResponse:
    """Whether the current week is due for assessment, and when the next weeks are."""
    schedule = await AssessmentScheduler(store).assessment_schedule(current_user.id, weeks_ahead=weeks_ahead)

    if schedule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Program not started",
        )
    return AssessmentScheduleResponse.model_validate(schedule)


@router.get("/stats", response_model=ProgressionStatsResponse)
async def get_progression_stats(
    current_user: CurrentUser,
    store: Store,
) -> ProgressionStatsResponse:
    """Program-level stats across all assessed weeks."""
    stats = await AssessmentScheduler(store).progression_stats(current_user.id)

    if stats is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progression stats unavailable",
        )
    return ProgressionStatsResponse.model_validate(stats)
