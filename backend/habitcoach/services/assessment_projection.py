"""
Assessment projection - Flattens a weekly assessment into table columns and back.

Reading is versioned: every field has a defined default, so records written by
an older schema still reconstruct the same way every time. The cached path is
lossy by nature (per-day series are not stored).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from habitcoach.models import WeeklyAssessmentRecord
from habitcoach.schemas.enums import PerformanceGrade, Pillar, ProgressionRecommendation, Trend
from habitcoach.services.consistency import (
    BASELINE_TIME_PATTERNS,
    ConsistencyAnalyzer,
    ConsistencyMetrics,
    ConsistencyPatterns,
    TimePattern,
)
from habitcoach.services.performance import (
    PillarPerformance,
    WeeklyPerformance,
    determine_grade,
    phase_for_week,
)
from habitcoach.services.recommender import ProgressionAssessment
from habitcoach.services.target_modifications import TargetModifications
from habitcoach.services.target_plan import TargetSet, default_target_set

# v1: averages, consistency days, recommendation, reasoning, modifications
# v2: adds grade, strongest/weakest, streaks, rates, risks, opportunities, targets
# v3: adds per-pillar consistency and consistency patterns
SCHEMA_VERSION = 3

PILLAR_COLUMNS: dict[Pillar, str] = {
    Pillar.STEPS: "steps_achievement_avg",
    Pillar.WATER: "water_achievement_avg",
    Pillar.SLEEP: "sleep_achievement_avg",
    Pillar.MOOD: "mood_achievement_avg",
}


@dataclass
class WeeklyAssessment:
    performance: WeeklyPerformance
    consistency: ConsistencyMetrics
    assessment: ProgressionAssessment
    targets: TargetSet
    next_week_targets: Optional[TargetSet] = None
    assessed_at: Optional[datetime] = None
    user_decision: Optional[str] = None

    @property
    def week_number(self) -> int:
        return self.performance.week


def to_record_values(weekly: WeeklyAssessment) -> dict[str, Any]:
    """Column values for a WeeklyAssessmentRecord upsert."""
    performance = weekly.performance
    consistency = weekly.consistency
    assessment = weekly.assessment

    values: dict[str, Any] = {
        "phase_number": performance.phase,
        "start_date": performance.start_date,
        "end_date": performance.end_date,
        "overall_achievement_avg": performance.average_achievement,
        "overall_grade": performance.overall_grade.value,
        "strongest_pillar": performance.strongest_pillar.value,
        "weakest_pillar": performance.weakest_pillar.value,
        "consistency_days": performance.consistency_days,
        "total_tracking_days": performance.total_tracking_days,
        "consistency_rate": consistency.consistency_rate,
        "current_streak": consistency.current_streak,
        "longest_streak": consistency.longest_streak,
        "weekend_consistency": consistency.weekend_consistency,
        "pillar_consistency": {pillar.value: value for pillar, value in consistency.pillar_consistency.items()},
        "consistency_patterns": consistency.patterns.to_dict(),
        "progression_recommendation": assessment.recommendation.value,
        "confidence": assessment.confidence,
        "decision_reasoning": list(assessment.reasoning),
        "risk_factors": list(assessment.risk_factors),
        "opportunities": list(assessment.opportunities),
        "target_modifications": assessment.modifications.to_dict() if assessment.modifications else None,
        "targets_at_assessment": weekly.targets.to_dict(),
        "schema_version": SCHEMA_VERSION,
        "assessed_at": weekly.assessed_at or datetime.utcnow(),
    }
    for pillar, column in PILLAR_COLUMNS.items():
        entry = performance.pillar_by_name(pillar)
        values[column] = entry.average_achievement if entry else 0.0
    return values


def _enum_or(enum_cls, value, default):
    try:
        return enum_cls(value) if value is not None else default
    except ValueError:
        return default


def _pillars_from_record(record: WeeklyAssessmentRecord) -> list[PillarPerformance]:
    return [
        PillarPerformance(
            pillar=pillar,
            average_achievement=float(getattr(record, column, None) or 0.0),
            consistent_days=0,
            trend=Trend.STABLE,
        )
        for pillar, column in PILLAR_COLUMNS.items()
    ]


def _pillar_consistency_from_record(record: WeeklyAssessmentRecord) -> dict[Pillar, int]:
    stored = getattr(record, "pillar_consistency", None) or {}
    values = {}
    for key, value in stored.items():
        pillar = _enum_or(Pillar, key, None)
        if pillar is not None and value is not None:
            values[pillar] = int(value)
    return values


def from_record(record: WeeklyAssessmentRecord) -> WeeklyAssessment:
    """Rebuild the assessment shapes from a stored record of any schema version."""
    pillars = _pillars_from_record(record)
    average = float(record.overall_achievement_avg or 0.0)
    consistency_days = int(record.consistency_days or 0)
    total_days = int(record.total_tracking_days or 0)

    strongest = max(pillars, key=lambda p: p.average_achievement).pillar
    weakest = min(pillars, key=lambda p: p.average_achievement).pillar

    performance = WeeklyPerformance(
        week=record.week_number,
        phase=record.phase_number or phase_for_week(record.week_number),
        start_date=record.start_date,
        end_date=record.end_date,
        average_achievement=average,
        consistency_days=consistency_days,
        total_tracking_days=total_days,
        strongest_pillar=_enum_or(Pillar, record.strongest_pillar, strongest),
        weakest_pillar=_enum_or(Pillar, record.weakest_pillar, weakest),
        overall_grade=_enum_or(
            PerformanceGrade, record.overall_grade, determine_grade(average, consistency_days)
        ),
        pillar_breakdown=pillars,
    )

    if record.consistency_rate is not None:
        rate = float(record.consistency_rate)
    else:
        rate = round(consistency_days / total_days * 100, 2) if total_days else 0.0

    consistency = ConsistencyMetrics(
        total_days=total_days,
        consistent_days=consistency_days,
        consistency_rate=rate,
        current_streak=int(record.current_streak or 0),
        longest_streak=int(record.longest_streak or 0),
        weekend_consistency=int(record.weekend_consistency if record.weekend_consistency is not None else 100),
        time_of_day_patterns=[TimePattern(*bucket) for bucket in BASELINE_TIME_PATTERNS],
        pillar_consistency=_pillar_consistency_from_record(record),
    )
    # Records before v3 carry no patterns; they are derived from the stored metrics
    consistency.patterns = (
        ConsistencyPatterns.from_dict(getattr(record, "consistency_patterns", None))
        or ConsistencyAnalyzer().identify_patterns(consistency)
    )

    assessment = ProgressionAssessment(
        recommendation=ProgressionRecommendation(record.progression_recommendation),
        confidence=int(record.confidence if record.confidence is not None else 70),
        reasoning=list(record.decision_reasoning or []),
        modifications=TargetModifications.from_dict(record.target_modifications),
        risk_factors=list(record.risk_factors or []),
        opportunities=list(record.opportunities or []),
    )

    targets = TargetSet.from_dict(record.targets_at_assessment) or default_target_set()

    return WeeklyAssessment(
        performance=performance,
        consistency=consistency,
        assessment=assessment,
        targets=targets,
        assessed_at=record.assessed_at,
        user_decision=record.user_decision,
    )
