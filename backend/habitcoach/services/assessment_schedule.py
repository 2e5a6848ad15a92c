"""
Assessment Schedule - Decides when a program week is due for assessment.

A week is due once it has no assessment stamped on or after its first day
and either the configured evening has arrived or the full week has passed.
Also summarizes stored assessments into program-level progression stats.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from habitcoach.models import WeeklyAssessmentRecord
from habitcoach.schemas.enums import (
    Pillar,
    ProgressionRecommendation,
    ScheduleStatus,
    Trend,
    UserDecision,
)
from habitcoach.services.assessment import AssessmentOrchestrator, AssessmentOutcome
from habitcoach.services.progression_config import ProgressionConfig, get_progression_config
from habitcoach.services.store import ProgressionStore, StoreError

logger = logging.getLogger(__name__)

NO_PLAN_REASON = "No active plan found"
CHECK_FAILED_REASON = "Error checking assessment status"
SCHEDULED_REASON = "Scheduled weekly assessment time"
OVERDUE_REASON = "Week completed - assessment overdue"

PILLAR_AVERAGE_COLUMNS: dict[Pillar, str] = {
    Pillar.STEPS: "steps_achievement_avg",
    Pillar.WATER: "water_achievement_avg",
    Pillar.SLEEP: "sleep_achievement_avg",
    Pillar.MOOD: "mood_achievement_avg",
}


@dataclass
class AssessmentDueCheck:
    needs_assessment: bool
    week_number: Optional[int] = None
    days_since_week_start: int = 0
    reason: str = ""


@dataclass
class ScheduledAssessment:
    week_number: int
    scheduled_for: datetime
    status: ScheduleStatus = ScheduleStatus.PENDING


@dataclass
class AssessmentSchedule:
    current_week: int
    check: AssessmentDueCheck
    upcoming: list[ScheduledAssessment] = field(default_factory=list)


@dataclass
class TriggerResult:
    triggered: bool
    check: AssessmentDueCheck
    outcome: Optional[AssessmentOutcome] = None


@dataclass
class ProgressionStats:
    total_weeks_completed: int = 0
    average_weekly_score: int = 0
    advancement_rate: int = 0
    strongest_pillar: Pillar = Pillar.STEPS
    improvement_trend: Trend = Trend.STABLE


def week_start_date(program_start: date, week_number: int, days_per_week: int = 7) -> date:
    return program_start + timedelta(days=(week_number - 1) * days_per_week)


def has_recent_assessment(last_assessment_date: Optional[date], week_start: date) -> bool:
    """An assessment stamped on or after the week's first day covers the week."""
    return last_assessment_date is not None and last_assessment_date >= week_start


class AssessmentScheduler:
    """Assessment timing and progression stats for one user's program."""

    def __init__(
        self,
        store: ProgressionStore,
        config: Optional[ProgressionConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.config = config or get_progression_config()
        self._clock = clock

    def is_assessment_time(self, now: datetime) -> bool:
        schedule = self.config.schedule
        return now.weekday() == schedule.assessment_weekday and now.hour >= schedule.assessment_hour

    def is_week_complete(self, program_start: date, week_number: int, today: Optional[date] = None) -> bool:
        """True once today is past the week's last day."""
        days_per_week = self.config.schedule.days_per_week
        week_end = week_start_date(program_start, week_number, days_per_week) + timedelta(days=days_per_week - 1)
        return (today or self._clock().date()) > week_end

    async def check_assessment_due(self, user_id: int) -> AssessmentDueCheck:
        """Never raises; a store failure reads as not due."""
        try:
            progress = await self.store.fetch_program_progress(user_id)
        except StoreError:
            logger.exception("Assessment due check failed", extra={"user_id": user_id})
            return AssessmentDueCheck(needs_assessment=False, reason=CHECK_FAILED_REASON)

        if progress is None:
            return AssessmentDueCheck(needs_assessment=False, reason=NO_PLAN_REASON)
        return self._due_check(progress, self._clock())

    def _due_check(self, progress, now: datetime) -> AssessmentDueCheck:
        days_per_week = self.config.schedule.days_per_week
        week_start = week_start_date(progress.start_date, progress.current_week, days_per_week)
        days_since = (now.date() - week_start).days

        scheduled = self.is_assessment_time(now)
        week_complete = self.is_week_complete(progress.start_date, progress.current_week, now.date())

        reason = ""
        needs = not has_recent_assessment(progress.last_assessment_date, week_start) and (scheduled or week_complete)
        if needs:
            reason = SCHEDULED_REASON if scheduled else OVERDUE_REASON

        return AssessmentDueCheck(
            needs_assessment=needs,
            week_number=progress.current_week,
            days_since_week_start=days_since,
            reason=reason,
        )

    async def assessment_schedule(self, user_id: int, weeks_ahead: int = 4) -> Optional[AssessmentSchedule]:
        """
        Due check plus the planned assessment time of the next few weeks.

        Each week is assessed on its last day at the configured hour. Only the
        current week can be completed or overdue. None without a program.
        """
        try:
            progress = await self.store.fetch_program_progress(user_id)
        except StoreError:
            logger.exception("Assessment schedule unavailable", extra={"user_id": user_id})
            return None
        if progress is None:
            return None

        schedule = self.config.schedule
        now = self._clock()
        check = self._due_check(progress, now)

        last_week = min(progress.current_week + weeks_ahead, self.config.program.max_weeks)
        upcoming = []
        for week in range(progress.current_week, last_week + 1):
            week_start = week_start_date(progress.start_date, week, schedule.days_per_week)
            assessment_day = week_start + timedelta(days=schedule.days_per_week - 1)

            status = ScheduleStatus.PENDING
            if week == progress.current_week:
                if has_recent_assessment(progress.last_assessment_date, week_start):
                    status = ScheduleStatus.COMPLETED
                elif check.days_since_week_start > schedule.days_per_week:
                    status = ScheduleStatus.OVERDUE

            upcoming.append(
                ScheduledAssessment(
                    week_number=week,
                    scheduled_for=datetime.combine(assessment_day, time(hour=schedule.assessment_hour)),
                    status=status,
                )
            )

        return AssessmentSchedule(current_week=progress.current_week, check=check, upcoming=upcoming)

    async def trigger_if_due(self, user_id: int, orchestrator: AssessmentOrchestrator) -> TriggerResult:
        """Assess the current week when it is due; otherwise leave everything untouched."""
        check = await self.check_assessment_due(user_id)
        if not check.needs_assessment:
            logger.debug("Assessment not due", extra={"user_id": user_id, "reason": check.reason})
            return TriggerResult(triggered=False, check=check)

        logger.info(
            "Triggering due assessment",
            extra={"user_id": user_id, "week_number": check.week_number, "reason": check.reason},
        )
        outcome = await orchestrator.conduct_assessment(user_id, check.week_number)
        return TriggerResult(triggered=True, check=check, outcome=outcome)

    async def progression_stats(self, user_id: int) -> Optional[ProgressionStats]:
        """Stats over every stored assessment; None when the store fails."""
        try:
            records = await self.store.fetch_prior_assessment_records(user_id)
        except StoreError:
            logger.exception("Progression stats unavailable", extra={"user_id": user_id})
            return None

        # Store returns newest first
        return summarize_progression(list(reversed(records)), self.config)


def summarize_progression(
    records: list[WeeklyAssessmentRecord], config: Optional[ProgressionConfig] = None
) -> ProgressionStats:
    """Records must be in ascending week order."""
    if config is None:
        config = get_progression_config()
    if not records:
        return ProgressionStats()

    total = len(records)
    overall = [record.overall_achievement_avg or 0.0 for record in records]

    advanced = sum(
        1
        for record in records
        if record.progression_recommendation == ProgressionRecommendation.ADVANCE.value
        or record.user_decision == UserDecision.OVERRIDE_ADVANCE.value
    )

    totals = {
        pillar: sum(getattr(record, column) or 0.0 for record in records)
        for pillar, column in PILLAR_AVERAGE_COLUMNS.items()
    }
    strongest = max(Pillar, key=lambda p: totals[p])

    return ProgressionStats(
        total_weeks_completed=total,
        average_weekly_score=int(round(sum(overall) / total)),
        advancement_rate=int(round(advanced / total * 100)),
        strongest_pillar=strongest,
        improvement_trend=improvement_trend(overall, config),
    )


def improvement_trend(overall_averages: list[float], config: Optional[ProgressionConfig] = None) -> Trend:
    """Compare the first and last windows of weekly averages; stable until both windows are full."""
    if config is None:
        config = get_progression_config()

    window = config.schedule.trend_window_weeks
    if window < 1 or len(overall_averages) < window * 2:
        return Trend.STABLE

    first = sum(overall_averages[:window]) / window
    last = sum(overall_averages[-window:]) / window
    delta = config.schedule.trend_delta

    if last > first + delta:
        return Trend.IMPROVING
    if last < first - delta:
        return Trend.DECLINING
    return Trend.STABLE
