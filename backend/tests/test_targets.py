"""Tests for the target roadmap and extension target softening."""
import pytest

from habitcoach.schemas.enums import Pillar
from habitcoach.services.progression_config import ProgramConfig, TargetSafetyConfig
from habitcoach.services.target_modifications import (
    MOOD_FOCUS_REASON,
    TargetModifications,
    adjustment_reason,
    apply_target_modifications,
    generate_target_modifications,
    lowest_allowed_target,
    reduction_for_achievement,
    soften_target,
)
from habitcoach.services.target_plan import (
    TargetLookupError,
    TargetSet,
    default_target_set,
    planned_targets_for_week,
)


class TestPlannedTargets:
    """Tests for the built-in progressive plan."""

    def test_week_one(self):
        targets = planned_targets_for_week(1)

        assert targets.steps == 6250
        assert targets.water_oz == 51
        assert targets.sleep_hr == 6.6
        assert targets.phase == 1

    def test_phase_one_ramps_each_week(self):
        weeks = [planned_targets_for_week(w) for w in range(1, 5)]

        assert [t.steps for t in weeks] == [6250, 7187, 8124, 9061]
        assert weeks[-1].sleep_hr == 6.9
        assert all(a.water_oz < b.water_oz for a, b in zip(weeks, weeks[1:]))

    def test_phase_two_steps(self):
        assert [planned_targets_for_week(w).steps for w in range(5, 9)] == [6300, 7500, 8800, 10000]
        assert planned_targets_for_week(6).water_oz == 95
        assert planned_targets_for_week(6).phase == 2

    def test_phase_three_holds_steady(self):
        for week in range(9, 13):
            targets = planned_targets_for_week(week)
            assert (targets.steps, targets.water_oz, targets.sleep_hr) == (10000, 95, 7.0)
            assert targets.phase == 3

    @pytest.mark.parametrize("week", [0, 13, -1])
    def test_out_of_range(self, week):
        with pytest.raises(TargetLookupError):
            planned_targets_for_week(week)

    def test_default_target_set(self):
        targets = default_target_set(ProgramConfig(default_steps=7000))
        assert (targets.steps, targets.water_oz, targets.sleep_hr) == (7000, 80, 7.0)


class TestTargetSetSerialization:
    """Tests for JSON column conversion."""

    def test_from_empty(self):
        assert TargetSet.from_dict(None) is None
        assert TargetSet.from_dict({}) is None

    def test_missing_keys_use_defaults(self):
        targets = TargetSet.from_dict({"steps": 9000})
        assert (targets.steps, targets.water_oz, targets.sleep_hr) == (9000, 80, 7.0)

    def test_preserves_focus(self):
        targets = TargetSet.from_dict(TargetSet(8000, 64, 7.0, week=3, phase=1, focus="water").to_dict())
        assert targets.focus == "water"
        assert targets.week == 3


class TestReductionBands:
    """Tests for achievement-based reduction."""

    @pytest.mark.parametrize(
        "achievement,reduction",
        [(0, 0.25), (29.9, 0.25), (30, 0.20), (49.9, 0.20), (50, 0.15), (69.9, 0.15), (70, 0.10), (95, 0.10)],
    )
    def test_bands(self, achievement, reduction):
        assert reduction_for_achievement(achievement) == reduction

    def test_custom_bands(self):
        config = TargetSafetyConfig(reduction_bands=[(50.0, 0.3)], default_reduction=0.05)
        assert reduction_for_achievement(40, config) == 0.3
        assert reduction_for_achievement(60, config) == 0.05


class TestSoftenTarget:
    """Tests for floors and rounding."""

    def test_steps_rounded_to_integer(self):
        assert soften_target(Pillar.STEPS, 7187, 0.15) == 6109

    def test_floor_applies(self):
        assert soften_target(Pillar.STEPS, 3500, 0.25) == 3000
        assert soften_target(Pillar.SLEEP, 5.5, 0.25) == 5.0

    def test_never_above_current(self):
        # Current already below floor: keep current rather than raise it
        assert soften_target(Pillar.WATER, 25, 0.25) == 25

    def test_sleep_rounded_to_tenth(self):
        assert soften_target(Pillar.SLEEP, 7.0, 0.20) == 5.6

    def test_limited_relative_to_planned_target(self):
        # Already softened from 80 to 50; a further 25% cut would reach 38
        assert soften_target(Pillar.WATER, 50, 0.25, planned=80) == 48

    def test_already_at_limit_stays(self):
        assert soften_target(Pillar.WATER, 48, 0.25, planned=80) == 48


class TestLowestAllowedTarget:
    """Tests for the per-week cumulative reduction limit."""

    def test_water_and_steps_forty_percent(self):
        config = TargetSafetyConfig()
        assert lowest_allowed_target(Pillar.WATER, 80, config) == 48
        assert lowest_allowed_target(Pillar.STEPS, 8124, config) == 4875

    def test_sleep_rounds_up_to_tenth(self):
        # 7.0 * 0.75 = 5.25; 5.2 would be a 25.7% cut
        assert lowest_allowed_target(Pillar.SLEEP, 7.0, TargetSafetyConfig()) == 5.3

    def test_floor_wins_over_percentage(self):
        assert lowest_allowed_target(Pillar.STEPS, 3500, TargetSafetyConfig()) == 3000


class TestGenerateModifications:
    """Tests for the extension modification set."""

    def test_water_focus_below_fifty(self):
        targets = TargetSet(steps=8000, water_oz=80, sleep_hr=7.0)
        mods = generate_target_modifications(Pillar.WATER, 45, targets)

        assert mods.water_oz == 64
        assert mods.steps is None
        assert mods.sleep_hr is None
        assert mods.adjustment_reason == "Reducing hydration target to focus on habit formation"

    def test_exactly_one_override(self):
        targets = TargetSet(steps=8000, water_oz=80, sleep_hr=7.0)
        for pillar in (Pillar.STEPS, Pillar.WATER, Pillar.SLEEP):
            mods = generate_target_modifications(pillar, 20, targets)
            assert list(mods.overrides()) == [pillar]

    def test_second_extension_limited_by_planned_targets(self):
        current = TargetSet(steps=8124, water_oz=50, sleep_hr=6.8)
        planned = TargetSet(steps=8124, water_oz=80, sleep_hr=6.8)

        mods = generate_target_modifications(Pillar.WATER, 20, current, planned_targets=planned)

        assert mods.water_oz == 48

    def test_mood_has_no_numeric_override(self):
        mods = generate_target_modifications(Pillar.MOOD, 10, TargetSet(8000, 80, 7.0))

        assert mods.focus_area == Pillar.MOOD
        assert mods.overrides() == {}
        assert mods.adjustment_reason == MOOD_FOCUS_REASON

    @pytest.mark.parametrize(
        "achievement,prefix",
        [(10, "Significantly reducing"), (40, "Reducing"), (60, "Slightly reducing"), (75, "Minor")],
    )
    def test_reason_bands(self, achievement, prefix):
        assert adjustment_reason(Pillar.STEPS, achievement).startswith(prefix)


class TestApplyModifications:
    """Tests for building the active target set of an extended week."""

    def test_replaces_only_focus_pillar(self):
        targets = TargetSet(steps=8000, water_oz=80, sleep_hr=7.0, week=3, phase=1)
        mods = TargetModifications(focus_area=Pillar.WATER, adjustment_reason="", water_oz=64)

        active = apply_target_modifications(targets, mods)

        assert (active.steps, active.water_oz, active.sleep_hr) == (8000, 64, 7.0)
        assert active.focus == "water"
        assert active.week == 3

    def test_no_modifications(self):
        targets = TargetSet(steps=8000, water_oz=80, sleep_hr=7.0)
        assert apply_target_modifications(targets, None) is targets

    def test_round_trip_of_partial_modifications(self):
        mods = TargetModifications(focus_area=Pillar.SLEEP, adjustment_reason="x", sleep_hr=6.3)
        data = mods.to_dict()

        assert "steps" not in data
        assert TargetModifications.from_dict(data) == mods
        assert TargetModifications.from_dict({}) is None
