from enum import Enum


class Pillar(str, Enum):
    # Declaration order breaks ties between equally-performing pillars
    STEPS = "steps"
    WATER = "water"
    SLEEP = "sleep"
    MOOD = "mood"


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class PerformanceGrade(str, Enum):
    MASTERY = "mastery"
    PROGRESS = "progress"
    STRUGGLE = "struggle"


class ProgressionRecommendation(str, Enum):
    ADVANCE = "advance"
    EXTEND = "extend"
    RESET = "reset"


class UserDecision(str, Enum):
    ACCEPTED = "accepted"
    OVERRIDE_ADVANCE = "override_advance"
    COACH_CONSULTATION = "coach_consultation"


class DecisionSource(str, Enum):
    USER = "user"
    SYSTEM = "system"


class TimePeriod(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class ScheduleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class HistoryEntryType(str, Enum):
    ADVANCEMENT = "advancement"
    EXTENSION = "extension"
    RESET = "reset"
    TARGET_MODIFICATION = "target_modification"


# Display names used in reasoning text
PILLAR_DISPLAY_NAMES: dict[Pillar, str] = {
    Pillar.STEPS: "Steps",
    Pillar.WATER: "Hydration",
    Pillar.SLEEP: "Sleep",
    Pillar.MOOD: "Mood Check-ins",
}

# Lower-case nouns used inside adjustment reasons
PILLAR_TARGET_NOUNS: dict[Pillar, str] = {
    Pillar.STEPS: "step",
    Pillar.WATER: "hydration",
    Pillar.SLEEP: "sleep",
    Pillar.MOOD: "mood check-in",
}

# Pillars whose target can be softened numerically (mood is coached qualitatively)
MODIFIABLE_PILLARS: tuple[Pillar, ...] = (Pillar.STEPS, Pillar.WATER, Pillar.SLEEP)

PHASE_NAMES: dict[int, str] = {
    1: "Foundation Building",
    2: "Movement & Activity",
    3: "Nutrition & Integration",
}
