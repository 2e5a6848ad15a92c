"""
Target roadmap - Which step/water/sleep goals are in force for a program week.

Users may carry explicit per-week rows in ``weekly_targets``; anything not
stored there follows the built-in progressive plan below.
"""
from dataclasses import dataclass
from typing import Any, Optional

from habitcoach.services.performance import phase_for_week
from habitcoach.services.progression_config import ProgramConfig, get_progression_config

OZ_PER_LITER = 33.814

# Phase 1 ramps from week 1 values by a fixed increment per week
PHASE1_BASE_STEPS = 6250
PHASE1_STEP_INCREMENT = 937
PHASE1_BASE_WATER_L = 1.5
PHASE1_WATER_INCREMENT_L = 0.43
PHASE1_BASE_SLEEP_HR = 6.6
PHASE1_SLEEP_INCREMENT_HR = 0.1

# Phase 2 steps by week-in-phase; water and sleep hold steady
PHASE2_STEPS = (6300, 7500, 8800, 10000)
PHASE2_WATER_OZ = 95
PHASE2_SLEEP_HR = 7.0

PHASE3_STEPS = 10000
PHASE3_WATER_OZ = 95
PHASE3_SLEEP_HR = 7.0


class TargetLookupError(Exception):
    """Raised when no target set can be resolved for a week."""


@dataclass
class TargetSet:
    steps: int
    water_oz: int
    sleep_hr: float
    week: Optional[int] = None
    phase: Optional[int] = None
    focus: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": self.steps,
            "water_oz": self.water_oz,
            "sleep_hr": self.sleep_hr,
            "week": self.week,
            "phase": self.phase,
            "focus": self.focus,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["TargetSet"]:
        if not data:
            return None
        defaults = get_progression_config().program
        return cls(
            steps=int(data.get("steps", defaults.default_steps)),
            water_oz=int(data.get("water_oz", defaults.default_water_oz)),
            sleep_hr=float(data.get("sleep_hr", defaults.default_sleep_hr)),
            week=data.get("week"),
            phase=data.get("phase"),
            focus=data.get("focus"),
        )


def default_target_set(config: Optional[ProgramConfig] = None) -> TargetSet:
    """Program-wide fallback used when no roadmap entry is reachable."""
    if config is None:
        config = get_progression_config().program
    return TargetSet(
        steps=config.default_steps,
        water_oz=config.default_water_oz,
        sleep_hr=config.default_sleep_hr,
    )


def planned_targets_for_week(week: int, config: Optional[ProgramConfig] = None) -> TargetSet:
    """
    Built-in progressive targets for a program week.

    Raises TargetLookupError for weeks outside the program.
    """
    if config is None:
        config = get_progression_config().program

    if week < 1 or week > config.max_weeks:
        raise TargetLookupError(f"No targets defined for week {week}")

    phase = phase_for_week(week, config.weeks_per_phase)

    if phase == 1:
        offset = week - 1
        steps = PHASE1_BASE_STEPS + offset * PHASE1_STEP_INCREMENT
        water_oz = round((PHASE1_BASE_WATER_L + offset * PHASE1_WATER_INCREMENT_L) * OZ_PER_LITER)
        sleep_hr = round(PHASE1_BASE_SLEEP_HR + offset * PHASE1_SLEEP_INCREMENT_HR, 1)
    elif phase == 2:
        week_in_phase = week - config.weeks_per_phase
        steps = PHASE2_STEPS[min(week_in_phase, len(PHASE2_STEPS)) - 1]
        water_oz = PHASE2_WATER_OZ
        sleep_hr = PHASE2_SLEEP_HR
    else:
        steps = PHASE3_STEPS
        water_oz = PHASE3_WATER_OZ
        sleep_hr = PHASE3_SLEEP_HR

    return TargetSet(steps=steps, water_oz=water_oz, sleep_hr=sleep_hr, week=week, phase=phase)
