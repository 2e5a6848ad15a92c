from datetime import date, datetime

from pydantic import BaseModel, Field

from habitcoach.schemas.enums import (
    PerformanceGrade,
    Pillar,
    ProgressionRecommendation,
    TimePeriod,
    Trend,
    UserDecision,
)


class TargetSetSchema(BaseModel):
    steps: int
    water_oz: int
    sleep_hr: float
    week: int | None = None
    phase: int | None = None
    focus: str | None = None

    class Config:
        from_attributes = True


class TargetModificationsSchema(BaseModel):
    focus_area: Pillar
    adjustment_reason: str = ""
    steps: int | None = Field(None, ge=0)
    water_oz: int | None = Field(None, ge=0)
    sleep_hr: float | None = Field(None, ge=0, le=24)

    class Config:
        from_attributes = True


class PillarPerformanceResponse(BaseModel):
    pillar: Pillar
    average_achievement: float = Field(..., ge=0, le=100)
    consistent_days: int
    trend: Trend
    daily_values: dict[date, float] = {}

    class Config:
        from_attributes = True


class WeeklyPerformanceResponse(BaseModel):
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
    pillar_breakdown: list[PillarPerformanceResponse]

    class Config:
        from_attributes = True


class TimePatternResponse(BaseModel):
    period: TimePeriod
    average_performance: float
    consistency: float

    class Config:
        from_attributes = True


class ConsistencyPatternsResponse(BaseModel):
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []

    class Config:
        from_attributes = True


class ConsistencyResponse(BaseModel):
    total_days: int
    consistent_days: int
    consistency_rate: float
    current_streak: int
    longest_streak: int
    weekend_consistency: int = Field(..., description="Weekend mean as % of weekday mean")
    time_of_day_patterns: list[TimePatternResponse] = []
    pillar_consistency: dict[Pillar, int] = {}
    patterns: ConsistencyPatternsResponse = ConsistencyPatternsResponse()

    class Config:
        from_attributes = True


class ProgressionAssessmentResponse(BaseModel):
    recommendation: ProgressionRecommendation
    confidence: int = Field(..., ge=0, le=100)
    reasoning: list[str]
    modifications: TargetModificationsSchema | None = None
    risk_factors: list[str] = []
    opportunities: list[str] = []

    class Config:
        from_attributes = True


class WeeklyAssessmentResponse(BaseModel):
    performance: WeeklyPerformanceResponse
    consistency: ConsistencyResponse
    assessment: ProgressionAssessmentResponse
    targets: TargetSetSchema
    next_week_targets: TargetSetSchema | None = None
    assessed_at: datetime | None = None
    user_decision: UserDecision | None = None

    class Config:
        from_attributes = True


class AssessmentOutcomeResponse(BaseModel):
    assessment: WeeklyAssessmentResponse
    from_cache: bool = False
    is_historical: bool = Field(False, description="True when an earlier week is shown because this week has no data")
    persisted: bool = False

    class Config:
        from_attributes = True


class AssessmentHistoryResponse(BaseModel):
    assessments: list[WeeklyAssessmentResponse]
    total: int


class UserDecisionRequest(BaseModel):
    decision: UserDecision
