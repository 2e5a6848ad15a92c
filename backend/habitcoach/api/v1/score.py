from fastapi import APIRouter

from habitcoach.api.deps import CurrentUser, SharedScoreCache, Store
from habitcoach.schemas.progression import CumulativeScoreRequest, CumulativeScoreResponse
from habitcoach.services.score_blender import CumulativeScoreBlender, CurrentWeekPercentages

router = APIRouter()


@router.post("/cumulative", response_model=CumulativeScoreResponse)
async def cumulative_score(
    score_in: CumulativeScoreRequest,
    current_user: CurrentUser,
    store: Store,
    score_cache: SharedScoreCache,
) -> CumulativeScoreResponse:
    """Rolling 0-100 score blending past weeks with the live week."""
    current = CurrentWeekPercentages(
        steps=score_in.steps,
        water=score_in.water,
        sleep=score_in.sleep,
        mood=score_in.mood,
    )
    blender = CumulativeScoreBlender(store, score_cache)
    score = await blender.compute_cumulative_score(
        current_user.id, current, force_refresh=score_in.force_refresh
    )
    return CumulativeScoreResponse(score=score)
