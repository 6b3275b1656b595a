"""Unit tests for metric impact calculators."""

from __future__ import annotations

import math

import pytest

from lifespan.domains.longevity.domain_logic.impact_calculator import (
    LABEL_ABOVE,
    LABEL_BELOW,
    LABEL_OPTIMAL,
    LABEL_WELL_BELOW,
    impact_minutes,
    impact_of,
    optimal_value,
    resolve_age,
    resolve_height,
)
from lifespan.domains.longevity.domain_logic.metric_models import Gender, MetricKind, Profile


# ---------------------------------------------------------------------------
# Curve properties
# ---------------------------------------------------------------------------

class TestSteps:
    def test_low_steps_strongly_negative(self, calibration, male_40):
        impact = impact_of(MetricKind.STEPS, 3000, male_40, calibration)
        assert impact.minutes_per_day < -30
        assert impact.comparison_label == LABEL_WELL_BELOW
        assert impact.study_reference

    def test_monotonic_up_to_plateau(self, calibration, male_40):
        values = [0, 1000, 2500, 4000, 6000, 8000, 9000, 10000]
        minutes = [impact_minutes("steps", v, male_40, calibration) for v in values]
        assert minutes == sorted(minutes)

    def test_flat_beyond_plateau(self, calibration, male_40):
        at_plateau = impact_minutes("steps", 10000, male_40, calibration)
        for v in (12000, 20000, 45000):
            assert impact_minutes("steps", v, male_40, calibration) == pytest.approx(at_plateau, abs=1e-9)

    def test_labels(self, calibration, male_40):
        assert impact_of("steps", 12000, male_40, calibration).comparison_label == LABEL_OPTIMAL
        assert impact_of("steps", 9500, male_40, calibration).comparison_label == LABEL_BELOW


class TestSleep:
    def test_u_shape(self, calibration, male_40):
        best = impact_minutes("sleep_hours", 7.5, male_40, calibration)
        assert best >= impact_minutes("sleep_hours", 5.0, male_40, calibration)
        assert best >= impact_minutes("sleep_hours", 10.0, male_40, calibration)

    def test_short_sleep_penalized_more_than_long(self, calibration, male_40):
        short = impact_minutes("sleep_hours", 5.0, male_40, calibration)
        long = impact_minutes("sleep_hours", 10.0, male_40, calibration)
        assert short < long < 0

    def test_labels(self, calibration, male_40):
        assert impact_of("sleep_hours", 7.5, male_40, calibration).comparison_label == LABEL_OPTIMAL
        assert impact_of("sleep_hours", 10, male_40, calibration).comparison_label == LABEL_ABOVE
        assert impact_of("sleep_hours", 5, male_40, calibration).comparison_label == LABEL_WELL_BELOW


class TestOrdinalKinds:
    @pytest.mark.parametrize(
        "kind", ["smoking", "alcohol", "stress", "nutrition", "social_connection"]
    )
    def test_monotonic_in_healthier_direction(self, calibration, male_40, kind):
        minutes = [impact_minutes(kind, score, male_40, calibration) for score in range(1, 11)]
        assert minutes == sorted(minutes)
        assert minutes[-1] > minutes[0]

    def test_score_ten_is_best(self, calibration, male_40):
        assert impact_of("smoking", 10, male_40, calibration).comparison_label == LABEL_OPTIMAL
        assert impact_minutes("smoking", 10, male_40, calibration) == pytest.approx(0)


class TestResearchOptimum:
    def test_every_kind_non_negative_at_optimum(self, calibration, male_40):
        for kind in MetricKind:
            value = optimal_value(kind, male_40, calibration)
            assert impact_minutes(kind, value, male_40, calibration) >= 0, kind


# ---------------------------------------------------------------------------
# Clamping and profile defaults
# ---------------------------------------------------------------------------

class TestClamping:
    def test_out_of_range_clamped_and_annotated(self, calibration, male_40):
        impact = impact_of("steps", -500, male_40, calibration)
        assert impact.clamped is True
        assert impact.value == -500
        assert impact.evaluated_value == 0
        assert any(a.startswith("clamped") for a in impact.annotations)
        assert impact.minutes_per_day == pytest.approx(impact_minutes("steps", 0, male_40, calibration))

    def test_upper_clamp(self, calibration, male_40):
        impact = impact_of("oxygen_saturation", 104, male_40, calibration)
        assert impact.evaluated_value == 100
        assert impact.clamped

    def test_infinite_value_clamped(self, calibration, male_40):
        impact = impact_of("resting_heart_rate", math.inf, male_40, calibration)
        assert impact.evaluated_value == 200
        assert math.isfinite(impact.minutes_per_day)

    def test_in_range_not_annotated(self, calibration, male_40):
        impact = impact_of("vo2_max", 45, male_40, calibration)
        assert impact.clamped is False
        assert impact.annotations == ()

    def test_nan_rejected(self, calibration, male_40):
        with pytest.raises(ValueError):
            impact_of("steps", math.nan, male_40, calibration)

    def test_unknown_kind_rejected(self, calibration, male_40):
        with pytest.raises(ValueError, match="Unknown metric kind"):
            impact_of("blood_pressure", 120, male_40, calibration)


class TestProfileDefaults:
    def test_missing_age_uses_default(self, calibration):
        assert resolve_age(Profile(), calibration) == (30.0, True)
        assert resolve_age(Profile(age_years=55), calibration) == (55, False)

    def test_missing_age_annotated_for_risk_curves(self, calibration):
        impact = impact_of("steps", 3000, Profile(), calibration)
        assert any(a.startswith("default_age") for a in impact.annotations)

    def test_none_profile_accepted(self, calibration):
        assert impact_of("stress", 5, None, calibration).minutes_per_day < 0

    def test_age_changes_relative_risk_impact(self, calibration):
        young = impact_minutes("steps", 3000, Profile(age_years=25), calibration)
        old = impact_minutes("steps", 3000, Profile(age_years=65), calibration)
        assert old < young < 0

    def test_reference_height_by_gender(self, calibration):
        assert resolve_height(Profile(gender=Gender.FEMALE), calibration) == (161.5, True)
        assert resolve_height(Profile(), calibration) == (168.4, True)
        assert resolve_height(Profile(height_cm=190), calibration) == (190, False)


class TestBodyMass:
    def test_scored_as_bmi(self, calibration):
        profile = Profile(age_years=40, height_cm=180)
        healthy = impact_of("body_mass", 22.5 * 1.8 ** 2, profile, calibration)
        assert healthy.minutes_per_day == pytest.approx(20)
        assert healthy.comparison_label == LABEL_OPTIMAL

    def test_obese_bmi_negative(self, calibration):
        profile = Profile(age_years=40, height_cm=170)
        impact = impact_of("body_mass", 35 * 1.7 ** 2, profile, calibration)
        assert impact.minutes_per_day < 0
        assert impact.comparison_label == LABEL_ABOVE

    def test_missing_height_annotated(self, calibration):
        impact = impact_of("body_mass", 70, Profile(age_years=40), calibration)
        assert any(a.startswith("default_height") for a in impact.annotations)

    def test_optimal_value_uses_height(self, calibration):
        assert optimal_value("body_mass", Profile(height_cm=200), calibration) == pytest.approx(90)
