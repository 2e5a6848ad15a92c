from fastapi import APIRouter, HTTPException, Query, status

from habitcoach.api.deps import CurrentUser, SharedScoreCache, Store
from habitcoach.schemas.assessment import (
    AssessmentHistoryResponse,
    AssessmentOutcomeResponse,
    UserDecisionRequest,
    WeeklyAssessmentResponse,
)
from habitcoach.schemas.schedule import AssessmentDueResponse, AssessmentTriggerResponse
from habitcoach.services.assessment import NO_DATA_ERROR, AssessmentOrchestrator
from habitcoach.services.assessment_schedule import AssessmentScheduler

router = APIRouter()


@router.get("", response_model=AssessmentHistoryResponse)
async def list_assessments(
    current_user: CurrentUser,
    store: Store,
    score_cache: SharedScoreCache,
    limit: int = Query(12, ge=1, le=52),
) -> AssessmentHistoryResponse:
    """Stored weekly assessments, newest week first."""
    orchestrator = AssessmentOrchestrator(store, score_cache)
    history = await orchestrator.assessment_history(current_user.id, limit=limit)

    return AssessmentHistoryResponse(
        assessments=[WeeklyAssessmentResponse.model_validate(a) for a in history],
        total=len(history),
    )


@router.post("/trigger", response_model=AssessmentTriggerResponse)
async def trigger_assessment(
    current_user: CurrentUser,
    store: Store,
    score_cache: SharedScoreCache,
) -> AssessmentTriggerResponse:
    """Assess the current program week if it is due; a no-op otherwise."""
    orchestrator = AssessmentOrchestrator(store, score_cache)
    result = await AssessmentScheduler(store).trigger_if_due(current_user.id, orchestrator)

    check = AssessmentDueResponse.model_validate(result.check)
    if not result.triggered:
        return AssessmentTriggerResponse(triggered=False, check=check)

    outcome = result.outcome
    if not outcome.success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND if outcome.error == NO_DATA_ERROR else status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=outcome.error,
        )

    return AssessmentTriggerResponse(
        triggered=True,
        check=check,
        outcome=AssessmentOutcomeResponse.model_validate(outcome),
    )


@router.get("/{week_number}", response_model=AssessmentOutcomeResponse)
async def get_assessment(
    week_number: int,
    current_user: CurrentUser,
    store: Store,
    score_cache: SharedScoreCache,
    force: bool = Query(False, description="Recompute even if a stored assessment exists"),
) -> AssessmentOutcomeResponse:
    """
    Assess a program week.

    Returns the stored result unless ``force`` is set. When the week has no
    data yet, the last completed week is returned with ``is_historical``.
    """
    if week_number < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="week_number must be at least 1",
        )

    orchestrator = AssessmentOrchestrator(store, score_cache)
    outcome = await orchestrator.conduct_assessment(current_user.id, week_number, force_recompute=force)

    if not outcome.success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND if outcome.error == NO_DATA_ERROR else status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=outcome.error,
        )

    return AssessmentOutcomeResponse.model_validate(outcome)


@router.put("/{week_number}/decision", status_code=status.HTTP_204_NO_CONTENT)
async def record_decision(
    week_number: int,
    decision_in: UserDecisionRequest,
    current_user: CurrentUser,
    store: Store,
    score_cache: SharedScoreCache,
) -> None:
    """Record how the user responded to the week's recommendation."""
    orchestrator = AssessmentOrchestrator(store, score_cache)
    recorded = await orchestrator.record_user_decision(current_user.id, week_number, decision_in.decision)

    if not recorded:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment not found",
        )
