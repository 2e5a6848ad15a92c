from datetime import datetime

from pydantic import BaseModel, Field

from habitcoach.schemas.assessment import AssessmentOutcomeResponse
from habitcoach.schemas.enums import Pillar, ScheduleStatus, Trend


class AssessmentDueResponse(BaseModel):
    needs_assessment: bool
    week_number: int | None = None
    days_since_week_start: int = 0
    reason: str = ""

    class Config:
        from_attributes = True


class ScheduledAssessmentResponse(BaseModel):
    week_number: int
    scheduled_for: datetime
    status: ScheduleStatus

    class Config:
        from_attributes = True


class AssessmentScheduleResponse(BaseModel):
    current_week: int
    check: AssessmentDueResponse
    upcoming: list[ScheduledAssessmentResponse] = []

    class Config:
        from_attributes = True


class AssessmentTriggerResponse(BaseModel):
    triggered: bool
    check: AssessmentDueResponse
    outcome: AssessmentOutcomeResponse | None = None


class ProgressionStatsResponse(BaseModel):
    total_weeks_completed: int
    average_weekly_score: int = Field(..., ge=0, le=100)
    advancement_rate: int = Field(..., ge=0, le=100, description="% of assessed weeks that advanced")
    strongest_pillar: Pillar
    improvement_trend: Trend

    class Config:
        from_attributes = True
