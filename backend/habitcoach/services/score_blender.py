"""
Cumulative Score Blender - One rolling 0-100 score from history plus the live week.

Historical weight grows with the program week so early weeks are not penalized
for lacking history. Advisory only; no decision reads this score.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from habitcoach.services.progression_config import ScoreBlendConfig, get_progression_config
from habitcoach.services.store import ProgressionStore

logger = logging.getLogger(__name__)


@dataclass
class CurrentWeekPercentages:
    """Live pillar completion as fractions (1.0 = target met)."""
    steps: float
    water: float
    sleep: float
    mood: float

    def clamped(self) -> list[float]:
        return [max(0.0, min(1.0, v)) for v in (self.steps, self.water, self.sleep, self.mood)]


class ScoreCache:
    """Per-user memo of the last computed score with a fixed time-to-live."""

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds is None:
            ttl_seconds = get_progression_config().score_blend.cache_ttl_seconds
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[int, tuple[int, float]] = {}

    def get(self, user_id: int) -> Optional[int]:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[user_id]
            return None
        return value

    def set(self, user_id: int, value: int) -> None:
        self._entries[user_id] = (value, self._clock())

    def invalidate(self, user_id: int) -> None:
        self._entries.pop(user_id, None)

    def clear(self) -> None:
        self._entries.clear()


def historical_weight(week: int, config: Optional[ScoreBlendConfig] = None) -> float:
    """Weight of past weeks for a program week; weeks past the schedule reuse its last entry."""
    if config is None:
        config = get_progression_config().score_blend

    weights = config.historical_weights
    if not weights or week < 1:
        return 0.0
    return weights[min(week, len(weights)) - 1]


def current_week_score(current: CurrentWeekPercentages) -> int:
    values = current.clamped()
    return int(round(sum(values) / len(values) * 100))


def blend_score(
    historical_averages: list[float],
    current: CurrentWeekPercentages,
    week: int,
    config: Optional[ScoreBlendConfig] = None,
) -> int:
    """
    Blend past weekly averages (0-100) with the live week.

    With no history the whole score comes from the current week.
    """
    if not historical_averages:
        return current_week_score(current)

    weight = historical_weight(week, config)
    values = current.clamped()
    current_part = sum(values) / len(values)
    past_part = (sum(historical_averages) / len(historical_averages)) / 100

    return int(round((weight * past_part + (1 - weight) * current_part) * 100))


class CumulativeScoreBlender:
    """Computes the rolling score for one user, memoized through a ScoreCache."""

    def __init__(
        self,
        store: ProgressionStore,
        cache: ScoreCache,
        config: Optional[ScoreBlendConfig] = None,
    ):
        self.store = store
        self.cache = cache
        self.config = config or get_progression_config().score_blend

    async def compute_cumulative_score(
        self,
        user_id: int,
        current: CurrentWeekPercentages,
        force_refresh: bool = False,
    ) -> int:
        if not force_refresh:
            cached = self.cache.get(user_id)
            if cached is not None:
                logger.debug("Cumulative score cache hit", extra={"user_id": user_id})
                return cached

        try:
            progress = await self.store.fetch_program_progress(user_id)
            week = progress.current_week if progress else 1
            records = await self.store.fetch_prior_assessment_records(user_id, before_week=week)
            historical = [r.overall_achievement_avg or 0.0 for r in records]
            score = blend_score(historical, current, week, self.config)
        except Exception:
            logger.exception("Cumulative score failed, using current week only", extra={"user_id": user_id})
            return current_week_score(current)

        logger.info(
            "Cumulative score computed",
            extra={
                "user_id": user_id,
                "week": week,
                "history_weeks": len(historical),
                "historical_weight": historical_weight(week, self.config) if historical else 0.0,
                "score": score,
            },
        )
        self.cache.set(user_id, score)
        return score
