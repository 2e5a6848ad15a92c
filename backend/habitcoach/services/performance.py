"""
Weekly Performance Calculator - Turns a week of daily metric rows into a performance summary.

Per-pillar daily percentages are clamped to [0, 100] so one abnormal day
(e.g. a pedometer glitch) cannot skew the weekly average.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from habitcoach.schemas.enums import PerformanceGrade, Pillar, Trend
from habitcoach.services.progression_config import PerformanceConfig, get_progression_config


@dataclass(frozen=True)
class DailyMetricRecord:
    """One tracked day: actual/target pairs for the four pillars."""
    date: date
    steps_actual: float = 0
    steps_target: float = 0
    water_oz_actual: float = 0
    water_oz_target: float = 0
    sleep_hr_actual: float = 0
    sleep_hr_target: float = 0
    mood_checkins_actual: float = 0
    mood_checkins_target: float = 0

    @classmethod
    def from_model(cls, row) -> "DailyMetricRecord":
        return cls(
            date=row.date,
            steps_actual=row.steps_actual or 0,
            steps_target=row.steps_target or 0,
            water_oz_actual=row.water_oz_actual or 0,
            water_oz_target=row.water_oz_target or 0,
            sleep_hr_actual=row.sleep_hr_actual or 0,
            sleep_hr_target=row.sleep_hr_target or 0,
            mood_checkins_actual=row.mood_checkins_actual or 0,
            mood_checkins_target=row.mood_checkins_target or 0,
        )

    def pair(self, pillar: Pillar) -> tuple[float, float]:
        """Return (actual, target) for a pillar."""
        if pillar == Pillar.STEPS:
            return self.steps_actual, self.steps_target
        if pillar == Pillar.WATER:
            return self.water_oz_actual, self.water_oz_target
        if pillar == Pillar.SLEEP:
            return self.sleep_hr_actual, self.sleep_hr_target
        return self.mood_checkins_actual, self.mood_checkins_target


@dataclass
class PillarPerformance:
    pillar: Pillar
    average_achievement: float
    consistent_days: int
    trend: Trend
    # Date-keyed, ascending; never index-aligned across pillars
    daily_values: dict[date, float] = field(default_factory=dict)

    @property
    def values(self) -> list[float]:
        return list(self.daily_values.values())


@dataclass
class WeeklyPerformance:
    week: int
    phase: int
    start_date: date
    end_date: date
    average_achievement: float
    consistency_days: int
    total_tracking_days: int
    strongest_pillar: Pillar
    weakest_pillar: Pillar
    overall_grade: PerformanceGrade
    pillar_breakdown: list[PillarPerformance]
    # Canonical date sequence every per-day computation iterates over
    days: list[date] = field(default_factory=list)

    def pillar_by_name(self, pillar: Pillar) -> Optional[PillarPerformance]:
        for entry in self.pillar_breakdown:
            if entry.pillar == pillar:
                return entry
        return None

    def day_scores(self) -> dict[date, float]:
        return day_scores(self.pillar_breakdown, self.days)


def phase_for_week(week: int, weeks_per_phase: int = 4) -> int:
    return max(1, math.ceil(week / weeks_per_phase))


def daily_pillar_percentage(record: DailyMetricRecord, pillar: Pillar) -> float:
    """min(100, actual/target*100); 0 when the target is missing."""
    actual, target = record.pair(pillar)
    if not target or target <= 0:
        return 0.0
    return max(0.0, min(100.0, (actual / target) * 100))


def day_scores(pillars: Sequence[PillarPerformance], days: Sequence[date]) -> dict[date, float]:
    """Unweighted mean across pillars for each day; a pillar missing a day contributes 0."""
    if not pillars:
        return {day: 0.0 for day in days}
    return {
        day: sum(p.daily_values.get(day, 0.0) for p in pillars) / len(pillars)
        for day in days
    }


def classify_trend(values: Sequence[float], config: Optional[PerformanceConfig] = None) -> Trend:
    """
    Compare the mean of the second half against the first half.

    Odd-length sequences drop the middle element from both halves.
    """
    if config is None:
        config = get_progression_config().performance

    if len(values) < config.trend_min_days:
        return Trend.STABLE

    first_half = values[: len(values) // 2]
    second_half = values[math.ceil(len(values) / 2):]

    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)
    difference = second_avg - first_avg

    if difference > config.trend_delta:
        return Trend.IMPROVING
    if difference < -config.trend_delta:
        return Trend.DECLINING
    return Trend.STABLE


def determine_grade(
    average_achievement: float,
    consistency_days: int,
    config: Optional[PerformanceConfig] = None,
) -> PerformanceGrade:
    if config is None:
        config = get_progression_config().performance

    if average_achievement >= config.mastery_average and consistency_days >= config.mastery_days:
        return PerformanceGrade.MASTERY
    if average_achievement >= config.progress_average and consistency_days >= config.progress_days:
        return PerformanceGrade.PROGRESS
    return PerformanceGrade.STRUGGLE


class PerformanceCalculator:
    """Calculates weekly performance from an ordered window of daily records."""

    def __init__(self, config: Optional[PerformanceConfig] = None, weeks_per_phase: Optional[int] = None):
        self.config = config or get_progression_config().performance
        self.weeks_per_phase = weeks_per_phase or get_progression_config().program.weeks_per_phase

    def calculate(
        self,
        records: Sequence[DailyMetricRecord],
        week: int,
        start_date: date,
        end_date: date,
    ) -> Optional[WeeklyPerformance]:
        """Return the week's performance, or None when nothing was tracked."""
        days_by_date = self._canonical_days(records)
        if not days_by_date:
            return None

        days = list(days_by_date.keys())
        pillar_breakdown = [
            self._pillar_performance(pillar, days_by_date) for pillar in Pillar
        ]

        average = round(
            sum(p.average_achievement for p in pillar_breakdown) / len(pillar_breakdown), 2
        )
        scores = day_scores(pillar_breakdown, days)
        consistency_days = sum(
            1 for score in scores.values() if score >= self.config.consistency_threshold
        )
        strongest, weakest = self._pillar_strengths(pillar_breakdown)

        return WeeklyPerformance(
            week=week,
            phase=phase_for_week(week, self.weeks_per_phase),
            start_date=start_date,
            end_date=end_date,
            average_achievement=average,
            consistency_days=consistency_days,
            total_tracking_days=len(days),
            strongest_pillar=strongest,
            weakest_pillar=weakest,
            overall_grade=determine_grade(average, consistency_days, self.config),
            pillar_breakdown=pillar_breakdown,
            days=days,
        )

    def _canonical_days(self, records: Sequence[DailyMetricRecord]) -> dict[date, DailyMetricRecord]:
        # Ascending by date; a repeated date keeps the last row seen
        by_date: dict[date, DailyMetricRecord] = {}
        for record in records:
            by_date[record.date] = record
        return dict(sorted(by_date.items()))

    def _pillar_performance(
        self, pillar: Pillar, days_by_date: dict[date, DailyMetricRecord]
    ) -> PillarPerformance:
        daily_values = {
            day: daily_pillar_percentage(record, pillar) for day, record in days_by_date.items()
        }
        values = list(daily_values.values())
        average = sum(values) / len(values)

        return PillarPerformance(
            pillar=pillar,
            average_achievement=round(average, 2),
            consistent_days=sum(1 for v in values if v >= self.config.consistency_threshold),
            trend=classify_trend(values, self.config),
            daily_values=daily_values,
        )

    def _pillar_strengths(self, pillars: list[PillarPerformance]) -> tuple[Pillar, Pillar]:
        # max/min return the first extreme, so ties go to declaration order
        strongest = max(pillars, key=lambda p: p.average_achievement)
        weakest = min(pillars, key=lambda p: p.average_achievement)
        return strongest.pillar, weakest.pillar
