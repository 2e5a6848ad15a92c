"""
Consistency Analyzer - Streaks, consistency rate and weekday/weekend patterns.

Works off the same canonical date sequence as the performance calculator, so
a day dropped by one component cannot shift another's alignment.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from habitcoach.schemas.enums import Pillar, TimePeriod
from habitcoach.services.performance import PillarPerformance, WeeklyPerformance, day_scores
from habitcoach.services.progression_config import PerformanceConfig, get_progression_config


@dataclass
class TimePattern:
    period: TimePeriod
    average_performance: float
    consistency: float


@dataclass
class ConsistencyPatterns:
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["ConsistencyPatterns"]:
        if not data:
            return None
        return cls(
            strengths=list(data.get("strengths") or []),
            weaknesses=list(data.get("weaknesses") or []),
            recommendations=list(data.get("recommendations") or []),
        )


@dataclass
class ConsistencyMetrics:
    total_days: int
    consistent_days: int
    consistency_rate: float
    current_streak: int
    longest_streak: int
    weekend_consistency: int
    time_of_day_patterns: list[TimePattern] = field(default_factory=list)
    # Share of tracked days at or above the threshold, per pillar
    pillar_consistency: dict[Pillar, int] = field(default_factory=dict)
    patterns: ConsistencyPatterns = field(default_factory=ConsistencyPatterns)


# Daily rows carry no log timestamps, so these buckets are fixed baselines
BASELINE_TIME_PATTERNS: tuple[tuple[TimePeriod, float, float], ...] = (
    (TimePeriod.MORNING, 85.0, 75.0),
    (TimePeriod.AFTERNOON, 78.0, 68.0),
    (TimePeriod.EVENING, 72.0, 82.0),
)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def streaks(flags: Sequence[bool]) -> tuple[int, int]:
    """Return (current, longest) runs of True; current must end on the last flag."""
    longest = 0
    run = 0
    for flag in flags:
        if flag:
            run += 1
            longest = max(longest, run)
        else:
            run = 0

    current = 0
    for flag in reversed(flags):
        if not flag:
            break
        current += 1

    return current, longest


def weekend_ratio(scores: dict[date, float]) -> int:
    """Weekend mean as a percentage of weekday mean; 100 when there is nothing to compare."""
    weekend = [score for day, score in scores.items() if is_weekend(day)]
    weekday = [score for day, score in scores.items() if not is_weekend(day)]

    if not weekend or not weekday:
        return 100

    weekday_avg = sum(weekday) / len(weekday)
    if weekday_avg <= 0:
        return 100

    weekend_avg = sum(weekend) / len(weekend)
    return round((weekend_avg / weekday_avg) * 100)


class ConsistencyAnalyzer:
    """Derives streak and pattern statistics from a week's pillar series."""

    def __init__(self, config: Optional[PerformanceConfig] = None):
        self.config = config or get_progression_config().performance

    def analyze(self, performance: WeeklyPerformance) -> ConsistencyMetrics:
        return self.analyze_pillars(performance.pillar_breakdown, performance.days)

    def analyze_pillars(
        self,
        pillars: Sequence[PillarPerformance],
        days: Optional[Sequence[date]] = None,
    ) -> ConsistencyMetrics:
        if days is None:
            days = sorted({day for p in pillars for day in p.daily_values})

        scores = day_scores(pillars, days)
        flags = [scores[day] >= self.config.consistency_threshold for day in days]

        total_days = len(days)
        consistent_days = sum(flags)
        rate = (consistent_days / total_days) * 100 if total_days else 0.0
        current, longest = streaks(flags)

        metrics = ConsistencyMetrics(
            total_days=total_days,
            consistent_days=consistent_days,
            consistency_rate=round(rate, 2),
            current_streak=current,
            longest_streak=longest,
            weekend_consistency=weekend_ratio(scores),
            time_of_day_patterns=[
                TimePattern(period, average, consistency)
                for period, average, consistency in BASELINE_TIME_PATTERNS
            ],
            pillar_consistency={p.pillar: self.pillar_consistency(p) for p in pillars},
        )
        metrics.patterns = self.identify_patterns(metrics)
        return metrics

    def pillar_consistency(self, pillar: PillarPerformance) -> int:
        """Percentage of a single pillar's tracked days at or above the threshold."""
        values = pillar.values
        if not values:
            return 0
        hits = sum(1 for v in values if v >= self.config.consistency_threshold)
        return round((hits / len(values)) * 100)

    def identify_patterns(self, metrics: ConsistencyMetrics) -> ConsistencyPatterns:
        patterns = ConsistencyPatterns()

        if metrics.consistency_rate >= 80:
            patterns.strengths.append("Excellent overall consistency")
        elif metrics.consistency_rate >= 60:
            patterns.strengths.append("Good consistency with room for improvement")
        else:
            patterns.weaknesses.append("Inconsistent daily performance")
            patterns.recommendations.append("Focus on building daily habits and routines")

        if metrics.current_streak >= 3:
            patterns.strengths.append(f"Strong current streak of {metrics.current_streak} days")
        elif metrics.longest_streak >= 5:
            patterns.strengths.append("Has demonstrated ability to maintain streaks")
            patterns.recommendations.append("Work on rebuilding your previous streak momentum")
        else:
            patterns.weaknesses.append("Difficulty maintaining consistent streaks")
            patterns.recommendations.append("Start with small, achievable daily goals")

        if metrics.weekend_consistency >= 90:
            patterns.strengths.append("Maintains consistency on weekends")
        elif metrics.weekend_consistency < 70:
            patterns.weaknesses.append("Weekend performance drops significantly")
            patterns.recommendations.append("Plan weekend routines to maintain healthy habits")

        return patterns
