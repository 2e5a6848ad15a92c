# SQLAlchemy Models
from habitcoach.models.user import User
from habitcoach.models.daily_metrics import DailyMetrics
from habitcoach.models.program_progress import ProgramProgress
from habitcoach.models.weekly_target import WeeklyTarget
from habitcoach.models.weekly_assessment import WeeklyAssessmentRecord

__all__ = [
    "User",
    "DailyMetrics",
    "ProgramProgress",
    "WeeklyTarget",
    "WeeklyAssessmentRecord",
]
