from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habitcoach.database import get_db
from habitcoach.models import User
from habitcoach.services.score_blender import ScoreCache
from habitcoach.services.store import ProgressionStore

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DbSession,
    user_id: int = 1,  # Identity comes from the calling layer; no auth here
) -> User:
    """Resolve the user the request acts for."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_store(db: DbSession) -> ProgressionStore:
    return ProgressionStore(db)


Store = Annotated[ProgressionStore, Depends(get_store)]


def get_score_cache(request: Request) -> ScoreCache:
    """The app-wide score memo, created at startup or on first use."""
    cache = getattr(request.app.state, "score_cache", None)
    if cache is None:
        cache = request.app.state.score_cache = ScoreCache()
    return cache


SharedScoreCache = Annotated[ScoreCache, Depends(get_score_cache)]
