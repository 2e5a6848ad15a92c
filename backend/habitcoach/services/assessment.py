"""
Assessment Orchestrator - Runs the full weekly assessment for a user.

Flow: cached record -> date range -> daily metrics -> performance ->
consistency -> recommendation -> upsert. Every public method returns a
result object; nothing raises past this boundary.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from habitcoach.schemas.enums import ProgressionRecommendation, UserDecision
from habitcoach.services.assessment_projection import WeeklyAssessment, from_record, to_record_values
from habitcoach.services.consistency import ConsistencyAnalyzer
from habitcoach.services.performance import PerformanceCalculator
from habitcoach.services.progression_config import ProgressionConfig, get_progression_config
from habitcoach.services.recommender import RecommendationEngine
from habitcoach.services.score_blender import ScoreCache
from habitcoach.services.store import ProgressionStore, StoreError
from habitcoach.services.target_plan import TargetLookupError, TargetSet, default_target_set

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "No tracking data available for this week"


@dataclass
class AssessmentOutcome:
    success: bool
    assessment: Optional[WeeklyAssessment] = None
    from_cache: bool = False
    is_historical: bool = False
    persisted: bool = False
    error: Optional[str] = None


class AssessmentOrchestrator:
    """Coordinates calculator, analyzer and engine for one user."""

    def __init__(
        self,
        store: ProgressionStore,
        score_cache: Optional[ScoreCache] = None,
        config: Optional[ProgressionConfig] = None,
    ):
        self.store = store
        self.score_cache = score_cache
        self.config = config or get_progression_config()
        self.calculator = PerformanceCalculator(self.config.performance, self.config.program.weeks_per_phase)
        self.analyzer = ConsistencyAnalyzer(self.config.performance)

    async def conduct_assessment(
        self,
        user_id: int,
        week_number: int,
        force_recompute: bool = False,
    ) -> AssessmentOutcome:
        try:
            return await self._conduct(user_id, week_number, force_recompute)
        except Exception as e:
            logger.exception(
                "Weekly assessment failed",
                extra={"user_id": user_id, "week_number": week_number},
            )
            return AssessmentOutcome(success=False, error=f"Assessment failed: {e}")

    async def _conduct(self, user_id: int, week_number: int, force_recompute: bool) -> AssessmentOutcome:
        logger.info(
            "Conducting weekly assessment",
            extra={"user_id": user_id, "week_number": week_number, "force": force_recompute},
        )

        if not force_recompute:
            existing = await self.store.fetch_assessment_record(user_id, week_number)
            if existing is not None:
                logger.debug("Assessment cache hit", extra={"user_id": user_id, "week_number": week_number})
                return AssessmentOutcome(
                    success=True, assessment=from_record(existing), from_cache=True, persisted=True
                )

        progress = await self.store.fetch_program_progress(user_id)
        start_date, end_date = self.week_date_range(
            progress.start_date if progress else None, week_number
        )

        records = await self.store.fetch_daily_metrics(user_id, start_date, end_date)
        performance = self.calculator.calculate(records, week_number, start_date, end_date)
        if performance is None:
            return await self._historical_fallback(user_id, week_number)

        consistency = self.analyzer.analyze(performance)
        week_extensions = progress.week_extensions if progress and progress.current_week == week_number else 0
        current_targets = await self._current_targets(user_id)
        planned_targets = await self._planned_targets(user_id, progress, current_targets)

        assessment = RecommendationEngine(
            performance,
            consistency,
            week_extensions=week_extensions,
            current_targets=current_targets,
            config=self.config,
            planned_targets=planned_targets,
        ).generate()

        logger.debug(
            "Recommendation generated",
            extra={
                "user_id": user_id,
                "week_number": week_number,
                "average": performance.average_achievement,
                "consistency_days": performance.consistency_days,
                "week_extensions": week_extensions,
                "recommendation": assessment.recommendation.value,
                "confidence": assessment.confidence,
            },
        )

        next_week_targets = None
        if assessment.recommendation == ProgressionRecommendation.ADVANCE:
            next_week_targets = await self._next_week_targets(user_id, week_number + 1)

        weekly = WeeklyAssessment(
            performance=performance,
            consistency=consistency,
            assessment=assessment,
            targets=current_targets,
            next_week_targets=next_week_targets,
            assessed_at=datetime.utcnow(),
        )

        persisted = await self._persist(user_id, weekly, has_progress=progress is not None)

        logger.info(
            "Weekly assessment complete",
            extra={
                "user_id": user_id,
                "week_number": week_number,
                "recommendation": assessment.recommendation.value,
                "persisted": persisted,
            },
        )
        return AssessmentOutcome(success=True, assessment=weekly, persisted=persisted)

    def week_date_range(self, program_start: Optional[date], week_number: int) -> tuple[date, date]:
        """Week N covers start + (N-1)*7 through six days later."""
        offset = timedelta(days=(week_number - 1) * 7)
        if program_start is None:
            # No progress row yet: count back from today
            week_start = date.today() - offset
        else:
            week_start = program_start + offset
        return week_start, week_start + timedelta(days=6)

    async def _historical_fallback(self, user_id: int, week_number: int) -> AssessmentOutcome:
        previous = await self.store.fetch_latest_assessment_before(user_id, week_number)
        if previous is None:
            logger.info("No data and no prior assessment", extra={"user_id": user_id, "week_number": week_number})
            return AssessmentOutcome(success=False, error=NO_DATA_ERROR)

        logger.info(
            "No data for week, returning last completed assessment",
            extra={"user_id": user_id, "week_number": week_number, "fallback_week": previous.week_number},
        )
        return AssessmentOutcome(
            success=True,
            assessment=from_record(previous),
            from_cache=True,
            is_historical=True,
            persisted=True,
        )

    async def _current_targets(self, user_id: int) -> TargetSet:
        try:
            return await self.store.fetch_current_targets(user_id)
        except (StoreError, TargetLookupError) as e:
            logger.warning("Current targets unavailable, using defaults", extra={"user_id": user_id, "error": str(e)})
            return default_target_set(self.config.program)

    async def _planned_targets(self, user_id: int, progress, current_targets: TargetSet) -> TargetSet:
        """Roadmap targets of the program's current week, before any extension softening."""
        if progress is None:
            return current_targets
        try:
            return await self.store.fetch_targets_for_week(user_id, progress.current_week, progress.current_phase)
        except (StoreError, TargetLookupError) as e:
            logger.warning("Planned targets unavailable", extra={"user_id": user_id, "error": str(e)})
            return current_targets

    async def _next_week_targets(self, user_id: int, week: int) -> Optional[TargetSet]:
        # Preview only; a missing roadmap entry is not an error here
        try:
            return await self.store.fetch_targets_for_week(user_id, week)
        except (StoreError, TargetLookupError):
            return None

    async def _persist(self, user_id: int, weekly: WeeklyAssessment, has_progress: bool) -> bool:
        try:
            await self.store.upsert_assessment_record(user_id, weekly.week_number, to_record_values(weekly))
        except StoreError as e:
            logger.warning(
                "Assessment not persisted",
                extra={"user_id": user_id, "week_number": weekly.week_number, "error": str(e)},
            )
            return False

        # A new record is stored from here on, whatever happens to the date stamp
        if self.score_cache is not None:
            self.score_cache.invalidate(user_id)

        if has_progress:
            try:
                await self.store.update_program_progress(user_id, last_assessment_date=date.today())
            except StoreError as e:
                logger.warning(
                    "Last assessment date not updated",
                    extra={"user_id": user_id, "week_number": weekly.week_number, "error": str(e)},
                )
        return True

    async def assessment_history(self, user_id: int, limit: int = 12) -> list[WeeklyAssessment]:
        """Stored assessments, newest week first; empty on store failure."""
        try:
            records = await self.store.fetch_prior_assessment_records(user_id, limit=limit)
        except StoreError:
            logger.exception("Assessment history unavailable", extra={"user_id": user_id})
            return []
        return [from_record(record) for record in records]

    async def record_user_decision(self, user_id: int, week_number: int, decision: UserDecision) -> bool:
        try:
            return await self.store.set_user_decision(user_id, week_number, decision)
        except StoreError:
            logger.exception(
                "User decision not recorded",
                extra={"user_id": user_id, "week_number": week_number, "decision": decision.value},
            )
            return False
