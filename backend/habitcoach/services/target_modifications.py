"""
Target modifications - Softened targets attached to an extended week.

Only the weakest pillar is touched, and never below its safety floor.
"""
import math
from dataclasses import dataclass
from typing import Any, Optional

from habitcoach.schemas.enums import MODIFIABLE_PILLARS, PILLAR_TARGET_NOUNS, Pillar
from habitcoach.services.progression_config import TargetSafetyConfig, get_progression_config
from habitcoach.services.target_plan import TargetSet

MOOD_FOCUS_REASON = "Focus on consistent daily mood check-ins rather than quantity"


@dataclass
class TargetModifications:
    focus_area: Pillar
    adjustment_reason: str
    steps: Optional[int] = None
    water_oz: Optional[int] = None
    sleep_hr: Optional[float] = None

    def overrides(self) -> dict[Pillar, float]:
        values = {
            Pillar.STEPS: self.steps,
            Pillar.WATER: self.water_oz,
            Pillar.SLEEP: self.sleep_hr,
        }
        return {pillar: value for pillar, value in values.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "focus_area": self.focus_area.value,
            "adjustment_reason": self.adjustment_reason,
        }
        for key in ("steps", "water_oz", "sleep_hr"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["TargetModifications"]:
        if not data or "focus_area" not in data:
            return None
        return cls(
            focus_area=Pillar(data["focus_area"]),
            adjustment_reason=data.get("adjustment_reason", ""),
            steps=data.get("steps"),
            water_oz=data.get("water_oz"),
            sleep_hr=data.get("sleep_hr"),
        )


def reduction_for_achievement(achievement: float, config: Optional[TargetSafetyConfig] = None) -> float:
    """Lower achievement earns a deeper cut."""
    if config is None:
        config = get_progression_config().target_safety

    for upper_bound, reduction in config.reduction_bands:
        if achievement < upper_bound:
            return reduction
    return config.default_reduction


def floor_for(pillar: Pillar, config: TargetSafetyConfig) -> float:
    if pillar == Pillar.STEPS:
        return config.min_steps
    if pillar == Pillar.WATER:
        return config.min_water_oz
    return config.min_sleep_hr


def max_reduction_pct_for(pillar: Pillar, config: TargetSafetyConfig) -> float:
    if pillar == Pillar.STEPS:
        return config.max_steps_reduction_pct
    if pillar == Pillar.WATER:
        return config.max_water_reduction_pct
    return config.max_sleep_reduction_pct


def current_target_for(pillar: Pillar, targets: TargetSet) -> float:
    if pillar == Pillar.STEPS:
        return targets.steps
    if pillar == Pillar.WATER:
        return targets.water_oz
    return targets.sleep_hr


def lowest_allowed_target(pillar: Pillar, planned: float, config: TargetSafetyConfig) -> float:
    """
    Lowest value a pillar may be softened to within one program week.

    The max reduction is measured from the week's planned target, so repeated
    extensions cannot compound past it.
    """
    limit = planned * (1 - max_reduction_pct_for(pillar, config) / 100)
    # Round up so the stored value never sits just past the limit
    if pillar == Pillar.SLEEP:
        lowest = math.ceil(round(limit * 10, 6)) / 10
    else:
        lowest = math.ceil(round(limit, 6))
    return max(floor_for(pillar, config), lowest)


def soften_target(
    pillar: Pillar,
    current: float,
    reduction: float,
    config: Optional[TargetSafetyConfig] = None,
    planned: Optional[float] = None,
) -> float:
    """
    Cut a target by ``reduction``; never below the floor or above the current value.

    With ``planned`` set, the result also stays within the max reduction from it.
    """
    if config is None:
        config = get_progression_config().target_safety

    reduced = current * (1 - reduction)
    if pillar == Pillar.SLEEP:
        reduced = round(reduced, 1)
    else:
        reduced = round(reduced)

    lower = floor_for(pillar, config)
    if planned is not None:
        lower = lowest_allowed_target(pillar, planned, config)
    return min(current, max(lower, reduced))


def adjustment_reason(pillar: Pillar, achievement: float) -> str:
    noun = PILLAR_TARGET_NOUNS[pillar]
    if achievement < 30:
        return f"Significantly reducing {noun} target to build confidence and consistency"
    if achievement < 50:
        return f"Reducing {noun} target to focus on habit formation"
    if achievement < 70:
        return f"Slightly reducing {noun} target to improve consistency"
    return f"Minor {noun} adjustment to perfect your routine"


def generate_target_modifications(
    focus_area: Pillar,
    achievement: float,
    current_targets: TargetSet,
    config: Optional[TargetSafetyConfig] = None,
    planned_targets: Optional[TargetSet] = None,
) -> TargetModifications:
    """
    Build the softened target for the weakest pillar of an extended week.

    ``current_targets`` may already be softened by an earlier extension;
    ``planned_targets`` is the week's roadmap entry the max reduction is
    measured from, and defaults to ``current_targets``.
    """
    if config is None:
        config = get_progression_config().target_safety
    if planned_targets is None:
        planned_targets = current_targets

    if focus_area not in MODIFIABLE_PILLARS:
        return TargetModifications(focus_area=focus_area, adjustment_reason=MOOD_FOCUS_REASON)

    reduction = reduction_for_achievement(achievement, config)
    new_value = soften_target(
        focus_area,
        current_target_for(focus_area, current_targets),
        reduction,
        config,
        planned=current_target_for(focus_area, planned_targets),
    )

    modifications = TargetModifications(
        focus_area=focus_area,
        adjustment_reason=adjustment_reason(focus_area, achievement),
    )
    if focus_area == Pillar.STEPS:
        modifications.steps = int(new_value)
    elif focus_area == Pillar.WATER:
        modifications.water_oz = int(new_value)
    else:
        modifications.sleep_hr = float(new_value)
    return modifications


def apply_target_modifications(
    targets: TargetSet, modifications: Optional[TargetModifications]
) -> TargetSet:
    """Return the active target set for the rest of an extended week."""
    if modifications is None:
        return targets

    return TargetSet(
        steps=modifications.steps if modifications.steps is not None else targets.steps,
        water_oz=modifications.water_oz if modifications.water_oz is not None else targets.water_oz,
        sleep_hr=modifications.sleep_hr if modifications.sleep_hr is not None else targets.sleep_hr,
        week=targets.week,
        phase=targets.phase,
        focus=modifications.focus_area.value,
    )
