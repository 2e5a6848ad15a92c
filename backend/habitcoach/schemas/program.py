from datetime import date, datetime

from pydantic import BaseModel, Field


class ProgramStart(BaseModel):
    start_date: date | None = Field(None, description="Defaults to today")


class ProgramProgressResponse(BaseModel):
    user_id: int
    current_week: int
    current_phase: int
    start_date: date
    week_extensions: int
    last_assessment_date: date | None = None
    active_targets: dict | None = None
    progression_decisions: list[dict] = []
    updated_at: datetime

    class Config:
        from_attributes = True
