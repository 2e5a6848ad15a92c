"""Tests for flattening assessments into records and rebuilding them."""
from datetime import date, datetime

from habitcoach.models import WeeklyAssessmentRecord
from habitcoach.schemas.enums import PerformanceGrade, Pillar, ProgressionRecommendation, Trend
from habitcoach.services.assessment_projection import (
    SCHEMA_VERSION,
    WeeklyAssessment,
    from_record,
    to_record_values,
)
from habitcoach.services.consistency import ConsistencyMetrics, ConsistencyPatterns
from habitcoach.services.performance import PillarPerformance, WeeklyPerformance
from habitcoach.services.recommender import ProgressionAssessment
from habitcoach.services.target_modifications import TargetModifications
from habitcoach.services.target_plan import TargetSet


def sample_assessment() -> WeeklyAssessment:
    averages = {Pillar.STEPS: 80.0, Pillar.WATER: 45.0, Pillar.SLEEP: 70.0, Pillar.MOOD: 65.0}
    pillars = [PillarPerformance(p, v, 1, Trend.STABLE) for p, v in averages.items()]
    performance = WeeklyPerformance(
        week=3,
        phase=1,
        start_date=date(2024, 1, 15),
        end_date=date(2024, 1, 21),
        average_achievement=65.0,
        consistency_days=2,
        total_tracking_days=7,
        strongest_pillar=Pillar.STEPS,
        weakest_pillar=Pillar.WATER,
        overall_grade=PerformanceGrade.STRUGGLE,
        pillar_breakdown=pillars,
    )
    return WeeklyAssessment(
        performance=performance,
        consistency=ConsistencyMetrics(7, 2, 28.57, 0, 2, 80),
        assessment=ProgressionAssessment(
            recommendation=ProgressionRecommendation.EXTEND,
            confidence=75,
            reasoning=["Building a strong foundation before advancing"],
            modifications=TargetModifications(
                focus_area=Pillar.WATER, adjustment_reason="Reducing hydration target", water_oz=64
            ),
            risk_factors=["Low consistency rate may indicate habit formation challenges"],
        ),
        targets=TargetSet(steps=8000, water_oz=80, sleep_hr=7.0, week=3, phase=1),
        assessed_at=datetime(2024, 1, 22, 9, 0),
    )


def record_from(values: dict, **extra) -> WeeklyAssessmentRecord:
    return WeeklyAssessmentRecord(user_id=1, week_number=3, **values, **extra)


class TestToRecordValues:
    """Tests for the flat column projection."""

    def test_columns(self):
        values = to_record_values(sample_assessment())

        assert values["overall_achievement_avg"] == 65.0
        assert values["water_achievement_avg"] == 45.0
        assert values["progression_recommendation"] == "extend"
        assert values["strongest_pillar"] == "steps"
        assert values["target_modifications"]["water_oz"] == 64
        assert values["targets_at_assessment"]["steps"] == 8000
        assert values["schema_version"] == SCHEMA_VERSION

    def test_no_modifications(self):
        weekly = sample_assessment()
        weekly.assessment.modifications = None
        assert to_record_values(weekly)["target_modifications"] is None


class TestFromRecord:
    """Tests for rebuilding an assessment from storage."""

    def test_current_schema_round_trip(self):
        original = sample_assessment()
        rebuilt = from_record(record_from(to_record_values(original)))

        assert rebuilt.week_number == 3
        assert rebuilt.performance.average_achievement == 65.0
        assert rebuilt.performance.weakest_pillar == Pillar.WATER
        assert rebuilt.performance.overall_grade == PerformanceGrade.STRUGGLE
        assert rebuilt.consistency.consistency_rate == 28.57
        assert rebuilt.consistency.weekend_consistency == 80
        assert rebuilt.assessment.recommendation == ProgressionRecommendation.EXTEND
        assert rebuilt.assessment.modifications.water_oz == 64
        assert rebuilt.targets.water_oz == 80
        assert rebuilt.assessed_at == datetime(2024, 1, 22, 9, 0)

    def test_consistency_patterns_stored(self):
        original = sample_assessment()
        original.consistency.pillar_consistency = {Pillar.STEPS: 86, Pillar.WATER: 14}
        original.consistency.patterns = ConsistencyPatterns(
            weaknesses=["Inconsistent daily performance"],
            recommendations=["Focus on building daily habits and routines"],
        )

        values = to_record_values(original)
        rebuilt = from_record(record_from(values))

        assert values["pillar_consistency"] == {"steps": 86, "water": 14}
        assert rebuilt.consistency.pillar_consistency == {Pillar.STEPS: 86, Pillar.WATER: 14}
        assert rebuilt.consistency.patterns == original.consistency.patterns

    def test_first_schema_record_gets_defaults(self):
        # Only the columns the first schema wrote
        record = record_from(
            dict(
                phase_number=1,
                start_date=date(2024, 1, 15),
                end_date=date(2024, 1, 21),
                steps_achievement_avg=90.0,
                water_achievement_avg=50.0,
                sleep_achievement_avg=85.0,
                mood_achievement_avg=95.0,
                overall_achievement_avg=80.0,
                consistency_days=5,
                total_tracking_days=7,
                progression_recommendation="advance",
                decision_reasoning=["Ready for the next challenge level"],
                schema_version=1,
            )
        )

        rebuilt = from_record(record)

        assert rebuilt.performance.strongest_pillar == Pillar.MOOD
        assert rebuilt.performance.weakest_pillar == Pillar.WATER
        assert rebuilt.performance.overall_grade == PerformanceGrade.MASTERY
        assert rebuilt.consistency.consistency_rate == 71.43
        assert rebuilt.consistency.current_streak == 0
        assert rebuilt.consistency.longest_streak == 0
        assert rebuilt.consistency.weekend_consistency == 100
        assert len(rebuilt.consistency.time_of_day_patterns) == 3
        assert rebuilt.assessment.confidence == 70
        assert rebuilt.assessment.modifications is None
        assert rebuilt.assessment.risk_factors == []
        assert (rebuilt.targets.steps, rebuilt.targets.water_oz, rebuilt.targets.sleep_hr) == (8000, 80, 7.0)
        # Patterns are derived from the stored metrics; per-pillar consistency was never stored
        assert rebuilt.consistency.pillar_consistency == {}
        assert "Good consistency with room for improvement" in rebuilt.consistency.patterns.strengths
        assert "Difficulty maintaining consistent streaks" in rebuilt.consistency.patterns.weaknesses

    def test_reconstruction_is_deterministic(self):
        values = to_record_values(sample_assessment())
        first = from_record(record_from(values))
        second = from_record(record_from(values))

        assert first.performance == second.performance
        assert first.consistency == second.consistency
        assert first.assessment == second.assessment

    def test_unknown_enum_values_fall_back(self):
        values = to_record_values(sample_assessment())
        values["overall_grade"] = "legendary"
        values["strongest_pillar"] = "meditation"

        rebuilt = from_record(record_from(values))

        assert rebuilt.performance.strongest_pillar == Pillar.STEPS
        # 65 average with 2 days -> struggle
        assert rebuilt.performance.overall_grade == PerformanceGrade.STRUGGLE
