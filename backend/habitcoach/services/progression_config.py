"""
Progression Configuration - Configurable thresholds for the weekly decision engine.

All "magic numbers" are centralized here for easy tuning without code changes.
"""
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class PerformanceConfig:
    """Weekly performance and grading configuration."""
    # A day (or pillar-day) counts as consistent at or above this percentage
    consistency_threshold: float = 80.0

    # Trend detection: second-half vs first-half mean difference (points)
    trend_delta: float = 5.0
    trend_min_days: int = 3

    # Grade thresholds (average AND consistency days must both hold)
    mastery_average: float = 80.0
    mastery_days: int = 5
    progress_average: float = 60.0
    progress_days: int = 3


@dataclass
class DecisionConfig:
    """Advance / extend / reset precedence thresholds."""
    advance_average: float = 80.0
    advance_days: int = 5
    reset_average: float = 40.0
    reset_extensions: int = 3


@dataclass
class ConfidenceConfig:
    """Confidence scoring configuration."""
    base: int = 70

    # Clear mastery
    strong_advance: int = 95
    strong_advance_average: float = 85.0
    strong_advance_days: int = 6

    # Clear struggle
    strong_reset: int = 90
    strong_reset_average: float = 35.0

    extend: int = 75

    # Bonuses
    streak_bonus: int = 5
    streak_bonus_days: int = 3
    rate_bonus: int = 5
    rate_bonus_threshold: float = 70.0


@dataclass
class TargetSafetyConfig:
    """Target softening bands and absolute safety floors."""
    # (achievement upper bound, reduction fraction); first matching band wins
    reduction_bands: list[tuple[float, float]] = field(
        default_factory=lambda: [(30.0, 0.25), (50.0, 0.20), (70.0, 0.15)]
    )
    default_reduction: float = 0.10

    min_steps: int = 3000
    min_water_oz: int = 30
    min_sleep_hr: float = 5.0

    max_steps_reduction_pct: float = 40.0
    max_water_reduction_pct: float = 40.0
    max_sleep_reduction_pct: float = 25.0


@dataclass
class ProgramConfig:
    """Program shape and execution guards."""
    max_weeks: int = 12
    weeks_per_phase: int = 4
    max_extensions: int = 5

    # Used when no target roadmap is reachable
    default_steps: int = 8000
    default_water_oz: int = 80
    default_sleep_hr: float = 7.0


@dataclass
class ScoreBlendConfig:
    """Cumulative score weighting and memo lifetime."""
    # Historical weight by program week; weeks past the list use the last entry
    historical_weights: list[float] = field(default_factory=lambda: [0.0, 0.25, 0.40])
    cache_ttl_seconds: int = 300


@dataclass
class ScheduleConfig:
    """When a program week becomes due for assessment."""
    # date.weekday() numbering: Monday is 0, Sunday is 6
    assessment_weekday: int = 6
    assessment_hour: int = 20
    days_per_week: int = 7
    # Stats trend compares the first and last N assessed weeks
    trend_window_weeks: int = 3
    trend_delta: float = 5.0


@dataclass
class ProgressionConfig:
    """Master configuration for the weekly progression engine."""
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    decision: DecisionConfig = field(default_factory=DecisionConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    target_safety: TargetSafetyConfig = field(default_factory=TargetSafetyConfig)
    program: ProgramConfig = field(default_factory=ProgramConfig)
    score_blend: ScoreBlendConfig = field(default_factory=ScoreBlendConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ProgressionConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "performance" in data:
            config.performance = PerformanceConfig(**data["performance"])
        if "decision" in data:
            config.decision = DecisionConfig(**data["decision"])
        if "confidence" in data:
            config.confidence = ConfidenceConfig(**data["confidence"])
        if "target_safety" in data:
            safety = dict(data["target_safety"])
            if "reduction_bands" in safety:
                # YAML has no tuples
                safety["reduction_bands"] = [tuple(band) for band in safety["reduction_bands"]]
            config.target_safety = TargetSafetyConfig(**safety)
        if "program" in data:
            config.program = ProgramConfig(**data["program"])
        if "score_blend" in data:
            config.score_blend = ScoreBlendConfig(**data["score_blend"])
        if "schedule" in data:
            config.schedule = ScheduleConfig(**data["schedule"])

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return asdict(self)


# Global default configuration instance
_default_config: Optional[ProgressionConfig] = None


def get_progression_config() -> ProgressionConfig:
    """Get the current progression configuration (singleton pattern)."""
    global _default_config
    if _default_config is None:
        _default_config = ProgressionConfig()
    return _default_config


def set_progression_config(config: ProgressionConfig) -> None:
    """Set a custom progression configuration."""
    global _default_config
    _default_config = config


def load_progression_config_from_yaml(path: str | Path) -> ProgressionConfig:
    """Load and set progression configuration from YAML file."""
    config = ProgressionConfig.from_yaml(path)
    set_progression_config(config)
    return config
