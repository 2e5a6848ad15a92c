"""
Recommendation Engine - Turns a week's performance into a progression decision.

Decision precedence:
- Advance: mastery average AND enough consistent days
- Reset: very low average OR too many extensions already granted
- Extend: everything else, optionally with a softened target
"""
from dataclasses import dataclass, field
from typing import Optional

from habitcoach.schemas.enums import PILLAR_DISPLAY_NAMES, ProgressionRecommendation, Trend
from habitcoach.services.consistency import ConsistencyMetrics
from habitcoach.services.performance import WeeklyPerformance
from habitcoach.services.progression_config import ProgressionConfig, get_progression_config
from habitcoach.services.target_modifications import (
    TargetModifications,
    generate_target_modifications,
)
from habitcoach.services.target_plan import TargetSet, default_target_set


@dataclass
class ProgressionAssessment:
    recommendation: ProgressionRecommendation
    confidence: int
    reasoning: list[str] = field(default_factory=list)
    modifications: Optional[TargetModifications] = None
    risk_factors: list[str] = field(default_factory=list)
    opportunities: list[str] = field(default_factory=list)


class RecommendationEngine:
    """Applies the progression policy to a performance/consistency pair."""

    def __init__(
        self,
        performance: WeeklyPerformance,
        consistency: ConsistencyMetrics,
        week_extensions: int = 0,
        current_targets: Optional[TargetSet] = None,
        config: Optional[ProgressionConfig] = None,
        planned_targets: Optional[TargetSet] = None,
    ):
        self.performance = performance
        self.consistency = consistency
        self.week_extensions = week_extensions
        self.config = config or get_progression_config()
        self.current_targets = current_targets or default_target_set(self.config.program)
        # Roadmap targets of the week; softening is limited relative to these
        self.planned_targets = planned_targets or self.current_targets

    def generate(self) -> ProgressionAssessment:
        recommendation = self.determine_recommendation()
        return ProgressionAssessment(
            recommendation=recommendation,
            confidence=self._confidence(recommendation),
            reasoning=self._reasoning(recommendation),
            modifications=self._modifications(recommendation),
            risk_factors=self._risk_factors(),
            opportunities=self._opportunities(),
        )

    def determine_recommendation(self) -> ProgressionRecommendation:
        rules = self.config.decision
        average = self.performance.average_achievement

        if average >= rules.advance_average and self.consistency.consistent_days >= rules.advance_days:
            return ProgressionRecommendation.ADVANCE

        if average < rules.reset_average or self.week_extensions >= rules.reset_extensions:
            return ProgressionRecommendation.RESET

        return ProgressionRecommendation.EXTEND

    def _confidence(self, recommendation: ProgressionRecommendation) -> int:
        cfg = self.config.confidence
        average = self.performance.average_achievement
        confidence = cfg.base

        if (
            recommendation == ProgressionRecommendation.ADVANCE
            and average >= cfg.strong_advance_average
            and self.consistency.consistent_days >= cfg.strong_advance_days
        ):
            confidence = cfg.strong_advance
        elif recommendation == ProgressionRecommendation.RESET and average < cfg.strong_reset_average:
            confidence = cfg.strong_reset
        elif recommendation == ProgressionRecommendation.EXTEND:
            confidence = cfg.extend

        if self.consistency.current_streak >= cfg.streak_bonus_days:
            confidence += cfg.streak_bonus
        if self.consistency.consistency_rate >= cfg.rate_bonus_threshold:
            confidence += cfg.rate_bonus

        return min(100, confidence)

    def _reasoning(self, recommendation: ProgressionRecommendation) -> list[str]:
        rules = self.config.decision
        average = round(self.performance.average_achievement)
        consistent = self.consistency.consistent_days
        total = self.consistency.total_days

        if recommendation == ProgressionRecommendation.ADVANCE:
            reasoning = [
                f"Achieved {average}% average performance (target: {round(rules.advance_average)}%)",
                f"Consistent for {consistent} out of {total} days (target: {rules.advance_days}+ days)",
            ]
            if self.consistency.current_streak >= 3:
                reasoning.append(f"Currently on a {self.consistency.current_streak}-day streak")
            reasoning.append("Ready for the next challenge level")
            return reasoning

        if recommendation == ProgressionRecommendation.EXTEND:
            reasoning = [
                f"Achieved {average}% average performance (target: {round(rules.advance_average)}%)",
                f"Consistent for {consistent} out of {total} days (target: {rules.advance_days}+ days)",
                "Building a strong foundation before advancing",
            ]
            weakest = self.performance.pillar_by_name(self.performance.weakest_pillar)
            if weakest and weakest.average_achievement < rules.advance_average:
                reasoning.append(
                    f"Focus area: {PILLAR_DISPLAY_NAMES[weakest.pillar]} needs attention "
                    f"({round(weakest.average_achievement)}% achievement)"
                )
            return reasoning

        reasoning = [f"Performance at {average}% needs improvement"]
        if self.week_extensions >= rules.reset_extensions:
            reasoning.append(f"This week has already been extended {self.week_extensions} times")
        reasoning.append("Rebuilding foundation will lead to better long-term success")
        reasoning.append("Previous week targets may be more appropriate right now")
        return reasoning

    def _modifications(self, recommendation: ProgressionRecommendation) -> Optional[TargetModifications]:
        if recommendation != ProgressionRecommendation.EXTEND:
            return None

        weakest = self.performance.pillar_by_name(self.performance.weakest_pillar)
        if weakest is None:
            return None

        return generate_target_modifications(
            weakest.pillar,
            weakest.average_achievement,
            self.current_targets,
            self.config.target_safety,
            planned_targets=self.planned_targets,
        )

    def _risk_factors(self) -> list[str]:
        risks = []

        if self.consistency.consistency_rate < 50:
            risks.append("Low consistency rate may indicate habit formation challenges")

        if self.consistency.weekend_consistency < 60:
            risks.append("Weekend performance drops more than 40% relative to weekdays")

        if self.performance.average_achievement < 60 and self.consistency.current_streak == 0:
            risks.append("No current momentum - may need additional support")

        struggling = [p for p in self.performance.pillar_breakdown if p.average_achievement < 50]
        if len(struggling) >= 2:
            risks.append("Multiple health areas need attention simultaneously")

        return risks

    def _opportunities(self) -> list[str]:
        opportunities = []

        strongest = self.performance.pillar_by_name(self.performance.strongest_pillar)
        if strongest and strongest.average_achievement >= 85:
            opportunities.append(
                f"Excellent {PILLAR_DISPLAY_NAMES[strongest.pillar]} habits can be a foundation for other areas"
            )

        if self.consistency.longest_streak >= 5 and self.consistency.current_streak < 3:
            opportunities.append("Has demonstrated ability to maintain streaks - can rebuild momentum")

        improving = [p for p in self.performance.pillar_breakdown if p.trend == Trend.IMPROVING]
        if len(improving) >= 2:
            opportunities.append("Multiple areas showing improvement trends")

        if self.consistency.weekend_consistency >= 90:
            opportunities.append("Strong weekend habits show good lifestyle integration")

        return opportunities
