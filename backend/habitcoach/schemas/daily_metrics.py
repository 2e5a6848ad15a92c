from datetime import date, datetime

from pydantic import BaseModel, Field


class DailyMetricsBase(BaseModel):
    steps_target: int = Field(8000, ge=0)
    steps_actual: int = Field(0, ge=0)
    water_oz_target: int = Field(80, ge=0)
    water_oz_actual: int = Field(0, ge=0)
    sleep_hr_target: float = Field(8.0, ge=0, le=24)
    sleep_hr_actual: float = Field(0.0, ge=0, le=24)
    mood_checkins_target: int = Field(7, ge=0)
    mood_checkins_actual: int = Field(0, ge=0)


class DailyMetricsUpsert(DailyMetricsBase):
    date: date


class DailyMetricsResponse(DailyMetricsBase):
    id: int
    user_id: int
    date: date
    updated_at: datetime

    class Config:
        from_attributes = True


class DailyMetricsListResponse(BaseModel):
    metrics: list[DailyMetricsResponse]
    total: int
