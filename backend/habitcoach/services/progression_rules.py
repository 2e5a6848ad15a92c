"""
Progression Guards - Deterministic checks run before a decision is executed.

A failing guard returns a rejection reason; guards never raise.
"""
from dataclasses import dataclass, field
from typing import Optional

from habitcoach.schemas.enums import PILLAR_DISPLAY_NAMES, ProgressionRecommendation
from habitcoach.services.progression_config import (
    ProgramConfig,
    TargetSafetyConfig,
    get_progression_config,
)
from habitcoach.services.target_modifications import (
    TargetModifications,
    current_target_for,
    floor_for,
    max_reduction_pct_for,
)
from habitcoach.services.target_plan import TargetSet

WEEK_MISMATCH_REASON = "Week mismatch - please refresh and try again"


@dataclass
class GuardResult:
    rule_id: str
    is_valid: bool = True
    reason: Optional[str] = None


@dataclass
class GuardEvaluation:
    results: list[GuardResult] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(r.is_valid for r in self.results)

    @property
    def reason(self) -> Optional[str]:
        """First rejection reason, in evaluation order."""
        for result in self.results:
            if not result.is_valid:
                return result.reason
        return None


def check_week_match(current_week: int, decision_week: int) -> GuardResult:
    """
    G0 - Stale decision
    The program must still be on the week the decision was computed for.
    """
    if current_week != decision_week:
        return GuardResult("G0", is_valid=False, reason=WEEK_MISMATCH_REASON)
    return GuardResult("G0")


def validate_recommendation(
    recommendation: ProgressionRecommendation,
    current_week: int,
    week_extensions: int,
    config: Optional[ProgramConfig] = None,
) -> GuardResult:
    """
    G1 - Program bounds
    No advance past the final week, no reset from week 1, capped extensions.
    """
    if config is None:
        config = get_progression_config().program

    if recommendation == ProgressionRecommendation.ADVANCE and current_week >= config.max_weeks:
        return GuardResult("G1", is_valid=False, reason="Already at maximum week")

    if recommendation == ProgressionRecommendation.RESET and current_week <= 1:
        return GuardResult("G1", is_valid=False, reason="Cannot reset from week 1")

    if recommendation == ProgressionRecommendation.EXTEND and week_extensions >= config.max_extensions:
        return GuardResult("G1", is_valid=False, reason="Maximum extensions reached for this week")

    return GuardResult("G1")


def validate_target_modifications(
    modifications: Optional[TargetModifications],
    planned: TargetSet,
    config: Optional[TargetSafetyConfig] = None,
) -> GuardResult:
    """
    G2 - Target safety
    Overrides stay at or above the floor and within the max reduction from the
    week's planned target, however many extensions came before.
    """
    if config is None:
        config = get_progression_config().target_safety

    if modifications is None:
        return GuardResult("G2")

    overrides = modifications.overrides()
    if len(overrides) > 1:
        return GuardResult("G2", is_valid=False, reason="Only one target can be modified per extension")

    for pillar, value in overrides.items():
        name = PILLAR_DISPLAY_NAMES[pillar]
        floor = floor_for(pillar, config)
        if value < floor:
            return GuardResult(
                "G2", is_valid=False, reason=f"{name} target cannot go below {floor}"
            )

        base = current_target_for(pillar, planned)
        if base > 0:
            reduction_pct = (base - value) / base * 100
            limit = max_reduction_pct_for(pillar, config)
            if reduction_pct > limit:
                return GuardResult(
                    "G2",
                    is_valid=False,
                    reason=f"{name} reduction of {round(reduction_pct)}% exceeds the {round(limit)}% limit",
                )

    return GuardResult("G2")


def evaluate_execution_guards(
    recommendation: ProgressionRecommendation,
    current_week: int,
    decision_week: int,
    week_extensions: int,
    modifications: Optional[TargetModifications] = None,
    planned: Optional[TargetSet] = None,
) -> GuardEvaluation:
    """Run every guard relevant to a decision; callers use the first rejection."""
    evaluation = GuardEvaluation()
    evaluation.results.append(check_week_match(current_week, decision_week))
    evaluation.results.append(
        validate_recommendation(recommendation, current_week, week_extensions)
    )
    if recommendation == ProgressionRecommendation.EXTEND and planned is not None:
        evaluation.results.append(validate_target_modifications(modifications, planned))
    return evaluation
