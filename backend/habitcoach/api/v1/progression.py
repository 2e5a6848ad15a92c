from fastapi import APIRouter, HTTPException, status

from habitcoach.api.deps import CurrentUser, SharedScoreCache, Store
from habitcoach.schemas.progression import (
    AdvancementPreviewResponse,
    ExecutionResultResponse,
    ModificationHistoryResponse,
    ProgressionDecisionRequest,
)
from habitcoach.services.performance import phase_for_week
from habitcoach.services.progression_executor import ProgressionDecision, ProgressionExecutor
from habitcoach.services.target_modifications import TargetModifications

router = APIRouter()


@router.post("/execute", response_model=ExecutionResultResponse)
async def execute_decision(
    decision_in: ProgressionDecisionRequest,
    current_user: CurrentUser,
    store: Store,
    score_cache: SharedScoreCache,
) -> ExecutionResultResponse:
    """
    Apply an advance, extend or reset decision.

    Rejections (stale week, program bounds, unsafe targets) return 409 with
    the reason; nothing is changed in that case.
    """
    modifications = None
    if decision_in.modifications is not None:
        modifications = TargetModifications(**decision_in.modifications.model_dump())

    decision = ProgressionDecision(
        type=decision_in.type,
        week_number=decision_in.week_number,
        phase_number=decision_in.phase_number or phase_for_week(decision_in.week_number),
        user_id=current_user.id,
        reasoning=decision_in.reasoning,
        confidence=decision_in.confidence,
        modifications=modifications,
        executed_by=decision_in.executed_by,
    )

    executor = ProgressionExecutor(store, score_cache)
    result = await executor.execute_decision(current_user.id, decision)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=result.error or result.message,
        )

    return ExecutionResultResponse.model_validate(result)


@router.get("/preview", response_model=AdvancementPreviewResponse)
async def preview_advancement(
    current_user: CurrentUser,
    store: Store,
) -> AdvancementPreviewResponse:
    """What advancing from the current week would change."""
    progress = await store.fetch_program_progress(current_user.id)
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Program not started",
        )

    preview = await ProgressionExecutor(store).advancement_preview(current_user.id, progress.current_week)
    if preview is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already at maximum week",
        )

    return AdvancementPreviewResponse.model_validate(preview)


@router.get("/modifications", response_model=ModificationHistoryResponse)
async def list_modifications(
    current_user: CurrentUser,
    store: Store,
) -> ModificationHistoryResponse:
    """Target modifications applied on past extensions."""
    entries = await ProgressionExecutor(store).modification_history(current_user.id)
    return ModificationHistoryResponse(entries=entries, total=len(entries))
