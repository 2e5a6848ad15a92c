from pydantic import BaseModel, Field

from habitcoach.schemas.assessment import TargetModificationsSchema, TargetSetSchema
from habitcoach.schemas.enums import DecisionSource, ProgressionRecommendation


class ProgressionDecisionRequest(BaseModel):
    type: ProgressionRecommendation
    week_number: int = Field(..., ge=1, description="Week the decision was computed against")
    phase_number: int | None = Field(None, ge=1)
    reasoning: list[str] = []
    confidence: int = Field(0, ge=0, le=100)
    modifications: TargetModificationsSchema | None = None
    executed_by: DecisionSource = DecisionSource.USER


class ExecutionResultResponse(BaseModel):
    success: bool
    type: ProgressionRecommendation
    new_week: int
    new_phase: int
    new_targets: TargetSetSchema | None = None
    message: str
    error: str | None = None

    class Config:
        from_attributes = True


class AdvancementPreviewResponse(BaseModel):
    next_week: int
    next_phase: int
    phase_change: bool
    phase_name: str | None = None
    next_targets: TargetSetSchema | None = None

    class Config:
        from_attributes = True


class ModificationHistoryResponse(BaseModel):
    entries: list[dict]
    total: int


class CumulativeScoreRequest(BaseModel):
    steps: float = Field(..., description="Fraction of today's step target met (1.0 = 100%)")
    water: float
    sleep: float
    mood: float
    force_refresh: bool = False


class CumulativeScoreResponse(BaseModel):
    score: int = Field(..., ge=0, le=100)
