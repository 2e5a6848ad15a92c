"""
Progression Executor - Applies an accepted advance/extend/reset decision.

Each handler follows validate -> mutate -> record -> report. The week-match
guard runs before any mutation, so a stale decision changes nothing.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from habitcoach.schemas.enums import (
    PHASE_NAMES,
    DecisionSource,
    HistoryEntryType,
    ProgressionRecommendation,
    UserDecision,
)
from habitcoach.services.performance import phase_for_week
from habitcoach.services.progression_config import ProgressionConfig, get_progression_config
from habitcoach.services.progression_rules import evaluate_execution_guards
from habitcoach.services.score_blender import ScoreCache
from habitcoach.services.store import ProgressionStore, StoreError
from habitcoach.services.target_modifications import TargetModifications, apply_target_modifications
from habitcoach.services.target_plan import TargetLookupError, TargetSet, default_target_set

logger = logging.getLogger(__name__)

RESET_SUPPORT_RECOMMENDATIONS = [
    "Focus on one habit at a time",
    "Set smaller daily goals",
    "Track progress consistently",
]


@dataclass
class ProgressionDecision:
    type: ProgressionRecommendation
    week_number: int
    phase_number: int
    user_id: int
    reasoning: list[str] = field(default_factory=list)
    confidence: int = 0
    modifications: Optional[TargetModifications] = None
    executed_by: DecisionSource = DecisionSource.USER


@dataclass
class ExecutionResult:
    success: bool
    type: ProgressionRecommendation
    new_week: int
    new_phase: int
    new_targets: Optional[TargetSet] = None
    message: str = ""
    error: Optional[str] = None


@dataclass
class AdvancementPreview:
    next_week: int
    next_phase: int
    phase_change: bool
    phase_name: Optional[str] = None
    next_targets: Optional[TargetSet] = None


class ProgressionExecutor:
    """Performs program state transitions for one store/session."""

    def __init__(
        self,
        store: ProgressionStore,
        score_cache: Optional[ScoreCache] = None,
        config: Optional[ProgressionConfig] = None,
    ):
        self.store = store
        self.score_cache = score_cache
        self.config = config or get_progression_config()

    async def execute_decision(self, user_id: int, decision: ProgressionDecision) -> ExecutionResult:
        logger.info(
            "Executing progression decision",
            extra={
                "user_id": user_id,
                "type": getattr(decision.type, "value", decision.type),
                "week_number": decision.week_number,
                "executed_by": getattr(decision.executed_by, "value", decision.executed_by),
            },
        )
        try:
            result = await self._execute(user_id, decision)
        except Exception as e:
            logger.exception(
                "Progression execution failed",
                extra={"user_id": user_id, "week_number": decision.week_number},
            )
            return self._failure(
                decision, "Unexpected error during progression execution", str(e) or "Unknown error"
            )

        if result.success and self.score_cache is not None:
            self.score_cache.invalidate(user_id)
        return result

    async def _execute(self, user_id: int, decision: ProgressionDecision) -> ExecutionResult:
        progress = await self.store.fetch_program_progress(user_id)
        if progress is None:
            return self._failure(decision, "Could not verify current plan state")

        baseline = None
        planned = None
        if decision.type == ProgressionRecommendation.EXTEND:
            baseline = await self._current_targets(user_id)
            planned = await self._planned_targets(user_id, progress, baseline)

        guards = evaluate_execution_guards(
            decision.type,
            current_week=progress.current_week,
            decision_week=decision.week_number,
            week_extensions=progress.week_extensions or 0,
            modifications=decision.modifications,
            planned=planned,
        )
        if not guards.is_valid:
            logger.info(
                "Progression decision rejected",
                extra={"user_id": user_id, "week_number": decision.week_number, "reason": guards.reason},
            )
            return self._failure(decision, guards.reason, guards.reason)

        if decision.type == ProgressionRecommendation.ADVANCE:
            return await self._advance(user_id, decision, progress)
        if decision.type == ProgressionRecommendation.EXTEND:
            return await self._extend(user_id, decision, progress, baseline)
        if decision.type == ProgressionRecommendation.RESET:
            return await self._reset(user_id, decision)

        return self._failure(
            decision, "Unknown progression type", f"Unsupported progression type: {decision.type}"
        )

    async def _advance(self, user_id: int, decision: ProgressionDecision, progress) -> ExecutionResult:
        current_week = decision.week_number
        current_phase = phase_for_week(current_week, self.config.program.weeks_per_phase)
        next_week = current_week + 1
        next_phase = phase_for_week(next_week, self.config.program.weeks_per_phase)

        prior = {
            "current_week": progress.current_week,
            "current_phase": progress.current_phase,
            "week_extensions": progress.week_extensions,
            "active_targets": progress.active_targets,
        }

        try:
            await self.store.update_program_progress(
                user_id,
                current_week=next_week,
                current_phase=next_phase,
                week_extensions=0,
                active_targets=None,
            )
        except StoreError as e:
            return self._failure(decision, "Failed to update plan progress", str(e))

        try:
            new_targets = await self.store.fetch_targets_for_week(user_id, next_week, next_phase)
        except (StoreError, TargetLookupError) as e:
            logger.error(
                "Next week targets unavailable, rolling back advancement",
                extra={"user_id": user_id, "next_week": next_week, "error": str(e)},
            )
            try:
                await self.store.update_program_progress(user_id, **prior)
            except StoreError as rollback_error:
                logger.error(
                    "Advancement rollback failed, progress left at the advanced week",
                    extra={
                        "user_id": user_id,
                        "stored_week": next_week,
                        "expected_week": prior["current_week"],
                        "error": str(rollback_error),
                    },
                )
                return self._failure(
                    decision,
                    "Failed to get targets for next week",
                    f"Target calculation failed and rollback to week {prior['current_week']} did not complete",
                )
            return self._failure(decision, "Failed to get targets for next week", "Target calculation failed")

        await self._record(
            user_id,
            HistoryEntryType.ADVANCEMENT,
            {
                "from_week": current_week,
                "to_week": next_week,
                "from_phase": current_phase,
                "to_phase": next_phase,
                "new_targets": new_targets.to_dict(),
                "advancement_reason": "; ".join(decision.reasoning),
                "executed_by": decision.executed_by.value,
            },
        )
        await self._stamp_assessment_date(user_id)
        await self._mark_accepted(user_id, decision.week_number)

        phase_note = f" (Phase {next_phase})" if next_phase != current_phase else ""
        return ExecutionResult(
            success=True,
            type=ProgressionRecommendation.ADVANCE,
            new_week=next_week,
            new_phase=next_phase,
            new_targets=new_targets,
            message=f"Successfully advanced to Week {next_week}{phase_note}",
        )

    async def _extend(
        self,
        user_id: int,
        decision: ProgressionDecision,
        progress,
        baseline: TargetSet,
    ) -> ExecutionResult:
        extension_count = (progress.week_extensions or 0) + 1
        modifications = decision.modifications
        active = apply_target_modifications(baseline, modifications) if modifications else None

        fields: dict[str, Any] = {"week_extensions": extension_count}
        if active is not None:
            fields["active_targets"] = active.to_dict()

        try:
            await self.store.update_program_progress(user_id, **fields)
        except StoreError as e:
            return self._failure(decision, "Failed to record week extension", str(e))

        if modifications is not None:
            await self._record(
                user_id,
                HistoryEntryType.TARGET_MODIFICATION,
                {
                    "week_number": decision.week_number,
                    "original_targets": baseline.to_dict(),
                    "modifications": modifications.to_dict(),
                    "modified_targets": active.to_dict(),
                },
            )

        await self._record(
            user_id,
            HistoryEntryType.EXTENSION,
            {
                "week_number": decision.week_number,
                "phase_number": decision.phase_number,
                "extension_count": extension_count,
                "modified_targets": active.to_dict() if active else None,
                "focus_area": modifications.focus_area.value if modifications else None,
                "extension_reason": "; ".join(decision.reasoning),
                "max_extensions_reached": extension_count >= self.config.program.max_extensions,
            },
        )
        await self._mark_accepted(user_id, decision.week_number)

        modification_note = f" with modified {modifications.focus_area.value} target" if modifications else ""
        return ExecutionResult(
            success=True,
            type=ProgressionRecommendation.EXTEND,
            new_week=decision.week_number,
            new_phase=decision.phase_number,
            new_targets=active or baseline,
            message=f"Week {decision.week_number} extended{modification_note}. Focus on building consistency.",
        )

    async def _reset(self, user_id: int, decision: ProgressionDecision) -> ExecutionResult:
        from_phase = phase_for_week(decision.week_number, self.config.program.weeks_per_phase)
        previous_week = max(1, decision.week_number - 1)
        previous_phase = phase_for_week(previous_week, self.config.program.weeks_per_phase)

        try:
            await self.store.update_program_progress(
                user_id,
                current_week=previous_week,
                current_phase=previous_phase,
                week_extensions=0,
                active_targets=None,
            )
        except StoreError as e:
            return self._failure(decision, "Failed to reset to previous week", str(e))

        try:
            reset_targets = await self.store.fetch_targets_for_week(user_id, previous_week, previous_phase)
        except (StoreError, TargetLookupError):
            reset_targets = default_target_set(self.config.program)

        await self._record(
            user_id,
            HistoryEntryType.RESET,
            {
                "from_week": decision.week_number,
                "to_week": previous_week,
                "from_phase": from_phase,
                "to_phase": previous_phase,
                "reset_targets": reset_targets.to_dict(),
                "reset_reason": "; ".join(decision.reasoning),
                "support_recommendations": list(RESET_SUPPORT_RECOMMENDATIONS),
            },
        )
        await self._mark_accepted(user_id, decision.week_number)

        return ExecutionResult(
            success=True,
            type=ProgressionRecommendation.RESET,
            new_week=previous_week,
            new_phase=previous_phase,
            new_targets=reset_targets,
            message=f"Reset to Week {previous_week}. Let's rebuild your foundation.",
        )

    async def _current_targets(self, user_id: int) -> TargetSet:
        try:
            return await self.store.fetch_current_targets(user_id)
        except (StoreError, TargetLookupError):
            return default_target_set(self.config.program)

    async def _planned_targets(self, user_id: int, progress, fallback: TargetSet) -> TargetSet:
        try:
            return await self.store.fetch_targets_for_week(user_id, progress.current_week, progress.current_phase)
        except (StoreError, TargetLookupError):
            return fallback

    async def _record(self, user_id: int, entry_type: HistoryEntryType, data: dict[str, Any]) -> None:
        # The transition is already committed; a lost history entry is logged, not fatal
        try:
            await self.store.append_progression_entry(user_id, entry_type, data)
        except StoreError as e:
            logger.warning(
                "Progression history entry not recorded",
                extra={"user_id": user_id, "type": entry_type.value, "error": str(e)},
            )

    async def _stamp_assessment_date(self, user_id: int) -> None:
        try:
            await self.store.update_program_progress(user_id, last_assessment_date=date.today())
        except StoreError as e:
            logger.warning("Last assessment date not updated", extra={"user_id": user_id, "error": str(e)})

    async def _mark_accepted(self, user_id: int, week_number: int) -> None:
        try:
            await self.store.set_user_decision(user_id, week_number, UserDecision.ACCEPTED)
        except StoreError as e:
            logger.warning(
                "User decision not recorded",
                extra={"user_id": user_id, "week_number": week_number, "error": str(e)},
            )

    def _failure(self, decision: ProgressionDecision, message: str, error: Optional[str] = None) -> ExecutionResult:
        return ExecutionResult(
            success=False,
            type=decision.type,
            new_week=decision.week_number,
            new_phase=decision.phase_number,
            message=message,
            error=error or message,
        )

    async def advancement_preview(self, user_id: int, current_week: int) -> Optional[AdvancementPreview]:
        """What advancing from ``current_week`` would look like; None at the final week."""
        next_week = current_week + 1
        if next_week > self.config.program.max_weeks:
            return None

        weeks_per_phase = self.config.program.weeks_per_phase
        current_phase = phase_for_week(current_week, weeks_per_phase)
        next_phase = phase_for_week(next_week, weeks_per_phase)

        try:
            next_targets = await self.store.fetch_targets_for_week(user_id, next_week, next_phase)
        except (StoreError, TargetLookupError):
            next_targets = None

        return AdvancementPreview(
            next_week=next_week,
            next_phase=next_phase,
            phase_change=next_phase != current_phase,
            phase_name=PHASE_NAMES.get(next_phase),
            next_targets=next_targets,
        )

    async def modification_history(self, user_id: int) -> list[dict[str, Any]]:
        """Target modification entries from the decision history, oldest first."""
        try:
            progress = await self.store.fetch_program_progress(user_id)
        except StoreError:
            logger.exception("Modification history unavailable", extra={"user_id": user_id})
            return []

        if progress is None:
            return []
        return [
            entry
            for entry in progress.progression_decisions or []
            if entry.get("type") == HistoryEntryType.TARGET_MODIFICATION.value
        ]
