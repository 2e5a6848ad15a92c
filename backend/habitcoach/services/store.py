"""
Progression Store - The read/write contract the engine uses against the database.

Every write commits on its own; any SQLAlchemy failure is rolled back and
re-raised as StoreError so callers handle one exception type.
"""
import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from habitcoach.models import DailyMetrics, ProgramProgress, WeeklyAssessmentRecord, WeeklyTarget
from habitcoach.schemas.enums import HistoryEntryType, UserDecision
from habitcoach.services.performance import DailyMetricRecord, phase_for_week
from habitcoach.services.target_plan import TargetSet, planned_targets_for_week

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the backing store cannot complete a read or write."""


class ProgressionStore:
    """Async data access for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, operation: str, user_id: int) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Store write failed",
                extra={"operation": operation, "user_id": user_id, "error": str(e)},
            )
            raise StoreError(f"{operation} failed") from e

    async def _execute(self, query, operation: str):
        # A failed statement aborts the transaction; roll back so the session stays usable
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Store read failed", extra={"operation": operation, "error": str(e)})
            raise StoreError(f"{operation} failed") from e

    async def _scalar(self, query, operation: str):
        result = await self._execute(query, operation)
        return result.scalar_one_or_none()

    async def _scalars(self, query, operation: str) -> list:
        result = await self._execute(query, operation)
        return list(result.scalars().all())

    # Daily metrics

    async def fetch_daily_metrics(self, user_id: int, start: date, end: date) -> list[DailyMetricRecord]:
        """Daily rows in [start, end], ascending by date."""
        rows = await self._scalars(
            select(DailyMetrics)
            .where(
                DailyMetrics.user_id == user_id,
                DailyMetrics.date >= start,
                DailyMetrics.date <= end,
            )
            .order_by(DailyMetrics.date.asc()),
            "fetch_daily_metrics",
        )
        return [DailyMetricRecord.from_model(row) for row in rows]

    # Program progress

    async def fetch_program_progress(self, user_id: int) -> Optional[ProgramProgress]:
        return await self._scalar(
            select(ProgramProgress).where(ProgramProgress.user_id == user_id),
            "fetch_program_progress",
        )

    async def update_program_progress(self, user_id: int, **fields: Any) -> ProgramProgress:
        progress = await self.fetch_program_progress(user_id)
        if progress is None:
            raise StoreError(f"No program progress for user {user_id}")

        for key, value in fields.items():
            setattr(progress, key, value)
        progress.updated_at = datetime.utcnow()

        await self._commit("update_program_progress", user_id)
        return progress

    async def append_progression_entry(
        self, user_id: int, entry_type: HistoryEntryType, data: dict[str, Any]
    ) -> None:
        """Append one {"type", "timestamp", "data"} entry to the decision history."""
        progress = await self.fetch_program_progress(user_id)
        if progress is None:
            raise StoreError(f"No program progress for user {user_id}")

        entry = {
            "type": entry_type.value,
            "timestamp": datetime.utcnow().isoformat(),
            "data": data,
        }
        # Reassign so the JSON column registers the change
        progress.progression_decisions = [*(progress.progression_decisions or []), entry]
        await self._commit("append_progression_entry", user_id)

    # Targets

    async def fetch_targets_for_week(
        self, user_id: int, week: int, phase: Optional[int] = None
    ) -> TargetSet:
        """
        Stored roadmap row for the week, else the built-in plan.

        Raises TargetLookupError when the week is outside the program.
        """
        row = await self._scalar(
            select(WeeklyTarget).where(
                WeeklyTarget.user_id == user_id,
                WeeklyTarget.week_number == week,
            ),
            "fetch_targets_for_week",
        )
        if row is not None:
            return TargetSet(
                steps=row.steps,
                water_oz=row.water_oz,
                sleep_hr=row.sleep_hr,
                week=week,
                phase=phase or phase_for_week(week),
                focus=row.focus,
            )

        targets = planned_targets_for_week(week)
        if phase is not None:
            targets.phase = phase
        return targets

    async def fetch_current_targets(self, user_id: int) -> TargetSet:
        """Softened targets of an extended week win over the roadmap."""
        progress = await self.fetch_program_progress(user_id)
        if progress is None:
            raise StoreError(f"No program progress for user {user_id}")

        active = TargetSet.from_dict(progress.active_targets)
        if active is not None:
            active.week = active.week or progress.current_week
            active.phase = active.phase or progress.current_phase
            return active

        return await self.fetch_targets_for_week(user_id, progress.current_week, progress.current_phase)

    # Assessment records

    async def fetch_assessment_record(self, user_id: int, week: int) -> Optional[WeeklyAssessmentRecord]:
        return await self._scalar(
            select(WeeklyAssessmentRecord).where(
                WeeklyAssessmentRecord.user_id == user_id,
                WeeklyAssessmentRecord.week_number == week,
            ),
            "fetch_assessment_record",
        )

    async def fetch_latest_assessment_before(
        self, user_id: int, week: int
    ) -> Optional[WeeklyAssessmentRecord]:
        return await self._scalar(
            select(WeeklyAssessmentRecord)
            .where(
                WeeklyAssessmentRecord.user_id == user_id,
                WeeklyAssessmentRecord.week_number < week,
            )
            .order_by(WeeklyAssessmentRecord.week_number.desc())
            .limit(1),
            "fetch_latest_assessment_before",
        )

    async def fetch_prior_assessment_records(
        self,
        user_id: int,
        before_week: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[WeeklyAssessmentRecord]:
        """Assessment records, newest week first."""
        query = (
            select(WeeklyAssessmentRecord)
            .where(WeeklyAssessmentRecord.user_id == user_id)
            .order_by(WeeklyAssessmentRecord.week_number.desc())
        )
        if before_week is not None:
            query = query.where(WeeklyAssessmentRecord.week_number < before_week)
        if limit is not None:
            query = query.limit(limit)
        return await self._scalars(query, "fetch_prior_assessment_records")

    async def upsert_assessment_record(
        self, user_id: int, week: int, values: dict[str, Any]
    ) -> WeeklyAssessmentRecord:
        """Insert or overwrite the (user, week) record with ``values``."""
        record = await self.fetch_assessment_record(user_id, week)
        if record is None:
            record = WeeklyAssessmentRecord(user_id=user_id, week_number=week)
            self.db.add(record)

        for key, value in values.items():
            setattr(record, key, value)
        record.updated_at = datetime.utcnow()

        await self._commit("upsert_assessment_record", user_id)
        return record

    async def set_user_decision(self, user_id: int, week: int, decision: UserDecision) -> bool:
        record = await self.fetch_assessment_record(user_id, week)
        if record is None:
            return False

        record.user_decision = decision.value
        await self._commit("set_user_decision", user_id)
        return True
