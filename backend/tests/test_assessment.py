"""Tests for the assessment orchestrator against a real (SQLite) store."""
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from habitcoach.models import ProgramProgress, User, WeeklyAssessmentRecord
from habitcoach.schemas.enums import Pillar, ProgressionRecommendation, UserDecision
from habitcoach.services.assessment import NO_DATA_ERROR, AssessmentOrchestrator
from habitcoach.services.score_blender import ScoreCache
from habitcoach.services.store import ProgressionStore, StoreError

PROGRAM_START = date(2024, 1, 1)


async def record_count(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(WeeklyAssessmentRecord).where(WeeklyAssessmentRecord.user_id == user_id)
    )
    return result.scalar_one()


class TestWeekDateRange:
    """Tests for program week boundaries."""

    def test_first_week(self):
        orchestrator = AssessmentOrchestrator(MagicMock())
        assert orchestrator.week_date_range(PROGRAM_START, 1) == (date(2024, 1, 1), date(2024, 1, 7))

    def test_third_week(self):
        orchestrator = AssessmentOrchestrator(MagicMock())
        assert orchestrator.week_date_range(PROGRAM_START, 3) == (date(2024, 1, 15), date(2024, 1, 21))

    def test_without_program_start_counts_back_from_today(self):
        orchestrator = AssessmentOrchestrator(MagicMock())
        start, end = orchestrator.week_date_range(None, 1)
        assert start == date.today()
        assert (end - start).days == 6


class TestConductAssessment:
    """Tests for the full assessment flow."""

    @pytest.mark.asyncio
    async def test_perfect_week_advances(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [1.0] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))

        outcome = await orchestrator.conduct_assessment(test_user.id, 1)

        assert outcome.success
        assert not outcome.from_cache
        assert outcome.persisted
        assert outcome.assessment.assessment.recommendation == ProgressionRecommendation.ADVANCE
        assert outcome.assessment.performance.average_achievement == 100.0
        assert outcome.assessment.next_week_targets.steps == 7187
        assert await record_count(db_session, test_user.id) == 1

        await db_session.refresh(program)
        assert program.last_assessment_date == date.today()

    @pytest.mark.asyncio
    async def test_low_week_resets(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [0.3] * 7)
        outcome = await AssessmentOrchestrator(ProgressionStore(db_session)).conduct_assessment(test_user.id, 1)

        assert outcome.assessment.assessment.recommendation == ProgressionRecommendation.RESET
        assert outcome.assessment.next_week_targets is None

    @pytest.mark.asyncio
    async def test_middling_week_extends_with_softened_target(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        week = [{"water": 0.45, "steps": 0.8, "sleep": 0.7, "mood": 0.75}] * 7
        await add_week_metrics(test_user.id, 1, week)

        outcome = await AssessmentOrchestrator(ProgressionStore(db_session)).conduct_assessment(test_user.id, 1)
        assessment = outcome.assessment.assessment

        assert assessment.recommendation == ProgressionRecommendation.EXTEND
        assert assessment.modifications.focus_area.value == "water"
        # Week 1 planned water is 51 oz; 20% cut -> 41
        assert assessment.modifications.water_oz == 41

    @pytest.mark.asyncio
    async def test_second_call_returns_cached_record(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [0.7] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))

        first = await orchestrator.conduct_assessment(test_user.id, 1)
        second = await orchestrator.conduct_assessment(test_user.id, 1)

        assert second.success
        assert second.from_cache
        assert second.assessment.assessment.recommendation == first.assessment.assessment.recommendation
        assert second.assessment.performance.average_achievement == first.assessment.performance.average_achievement
        assert second.assessment.assessment.confidence == first.assessment.assessment.confidence
        assert second.assessment.assessment.reasoning == first.assessment.assessment.reasoning
        assert await record_count(db_session, test_user.id) == 1

    @pytest.mark.asyncio
    async def test_force_recompute_overwrites(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [0.7] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))

        await orchestrator.conduct_assessment(test_user.id, 1)
        outcome = await orchestrator.conduct_assessment(test_user.id, 1, force_recompute=True)

        assert not outcome.from_cache
        assert outcome.persisted
        assert await record_count(db_session, test_user.id) == 1

    @pytest.mark.asyncio
    async def test_no_data_and_no_history(self, db_session: AsyncSession, test_user: User, program: ProgramProgress):
        outcome = await AssessmentOrchestrator(ProgressionStore(db_session)).conduct_assessment(test_user.id, 2)

        assert not outcome.success
        assert outcome.error == NO_DATA_ERROR
        assert outcome.assessment is None

    @pytest.mark.asyncio
    async def test_no_data_falls_back_to_last_assessment(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [1.0] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))
        await orchestrator.conduct_assessment(test_user.id, 1)

        outcome = await orchestrator.conduct_assessment(test_user.id, 3)

        assert outcome.success
        assert outcome.is_historical
        assert outcome.from_cache
        assert outcome.assessment.week_number == 1
        # The fallback is not written as week 3
        assert await record_count(db_session, test_user.id) == 1

    @pytest.mark.asyncio
    async def test_extension_count_applies_only_to_current_week(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        program.current_week = 2
        program.week_extensions = 3
        await db_session.commit()
        await add_week_metrics(test_user.id, 1, [0.7] * 7)
        await add_week_metrics(test_user.id, 2, [0.7] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))

        past_week = await orchestrator.conduct_assessment(test_user.id, 1)
        current_week = await orchestrator.conduct_assessment(test_user.id, 2)

        assert past_week.assessment.assessment.recommendation == ProgressionRecommendation.EXTEND
        assert current_week.assessment.assessment.recommendation == ProgressionRecommendation.RESET

    @pytest.mark.asyncio
    async def test_active_targets_used_as_baseline(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        program.active_targets = {"steps": 6000, "water_oz": 70, "sleep_hr": 7.0}
        await db_session.commit()
        await add_week_metrics(test_user.id, 1, [{"water": 0.45, "steps": 0.7, "sleep": 0.7, "mood": 0.75}] * 7)

        outcome = await AssessmentOrchestrator(ProgressionStore(db_session)).conduct_assessment(test_user.id, 1)

        assert outcome.assessment.targets.water_oz == 70
        assert outcome.assessment.assessment.modifications.water_oz == 56

    @pytest.mark.asyncio
    async def test_persistence_failure_still_returns_assessment(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [1.0] * 7)
        store = ProgressionStore(db_session)
        store.upsert_assessment_record = AsyncMock(side_effect=StoreError("disk full"))
        cache = ScoreCache()
        cache.set(test_user.id, 42)

        outcome = await AssessmentOrchestrator(store, score_cache=cache).conduct_assessment(test_user.id, 1)

        assert outcome.success
        assert not outcome.persisted
        assert outcome.assessment.assessment.recommendation == ProgressionRecommendation.ADVANCE
        assert cache.get(test_user.id) == 42

    @pytest.mark.asyncio
    async def test_successful_write_invalidates_score_cache(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [1.0] * 7)
        cache = ScoreCache()
        cache.set(test_user.id, 42)

        await AssessmentOrchestrator(ProgressionStore(db_session), score_cache=cache).conduct_assessment(
            test_user.id, 1
        )

        assert cache.get(test_user.id) is None

    @pytest.mark.asyncio
    async def test_stored_record_counts_as_persisted_when_date_stamp_fails(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [1.0] * 7)
        store = ProgressionStore(db_session)
        store.update_program_progress = AsyncMock(side_effect=StoreError("locked"))
        cache = ScoreCache()
        cache.set(test_user.id, 42)

        outcome = await AssessmentOrchestrator(store, score_cache=cache).conduct_assessment(test_user.id, 1)

        assert outcome.success
        assert outcome.persisted
        assert await record_count(db_session, test_user.id) == 1
        assert cache.get(test_user.id) is None

    @pytest.mark.asyncio
    async def test_consistency_patterns_attached_and_cached(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [1.0] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))

        fresh = await orchestrator.conduct_assessment(test_user.id, 1)
        cached = await orchestrator.conduct_assessment(test_user.id, 1)

        consistency = fresh.assessment.consistency
        assert "Excellent overall consistency" in consistency.patterns.strengths
        assert consistency.pillar_consistency[Pillar.STEPS] == 100
        assert cached.from_cache
        assert cached.assessment.consistency.patterns == consistency.patterns
        assert cached.assessment.consistency.pillar_consistency == consistency.pillar_consistency

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported_not_raised(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress
    ):
        store = ProgressionStore(db_session)
        store.fetch_daily_metrics = AsyncMock(side_effect=RuntimeError("boom"))

        outcome = await AssessmentOrchestrator(store).conduct_assessment(test_user.id, 1)

        assert not outcome.success
        assert outcome.error == "Assessment failed: boom"

    @pytest.mark.asyncio
    async def test_without_program_progress(self, db_session: AsyncSession, test_user: User):
        outcome = await AssessmentOrchestrator(ProgressionStore(db_session)).conduct_assessment(test_user.id, 1)

        assert not outcome.success
        assert outcome.error == NO_DATA_ERROR


class TestHistoryAndDecisions:
    """Tests for stored assessment history and user decisions."""

    @pytest.mark.asyncio
    async def test_history_newest_first(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))
        for week in (1, 2, 3):
            await add_week_metrics(test_user.id, week, [0.7] * 7)
            await orchestrator.conduct_assessment(test_user.id, week)

        history = await orchestrator.assessment_history(test_user.id, limit=2)

        assert [h.week_number for h in history] == [3, 2]

    @pytest.mark.asyncio
    async def test_record_user_decision(
        self, db_session: AsyncSession, test_user: User, program: ProgramProgress, add_week_metrics
    ):
        await add_week_metrics(test_user.id, 1, [0.7] * 7)
        orchestrator = AssessmentOrchestrator(ProgressionStore(db_session))
        await orchestrator.conduct_assessment(test_user.id, 1)

        assert await orchestrator.record_user_decision(test_user.id, 1, UserDecision.COACH_CONSULTATION)
        assert not await orchestrator.record_user_decision(test_user.id, 5, UserDecision.ACCEPTED)

        cached = await orchestrator.conduct_assessment(test_user.id, 1)
        assert cached.assessment.user_decision == "coach_consultation"
