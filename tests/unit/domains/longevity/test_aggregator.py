"""Unit tests for the impact aggregator and battery level."""

from __future__ import annotations

import dataclasses
import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from lifespan.core.calibration.models import CalibrationError
from lifespan.domains.longevity.domain_logic.aggregator import (
    aggregate,
    battery_level,
    representative_value,
)
from lifespan.domains.longevity.domain_logic.impact_calculator import impact_minutes
from lifespan.domains.longevity.domain_logic.metric_models import (
    MetricKind,
    PeriodType,
    Provenance,
)

NOON = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mixed_samples(make_sample):
    return [
        make_sample("steps", 3000),
        make_sample("sleep_hours", 6),
        make_sample("resting_heart_rate", 72),
        make_sample("stress", 4, provenance=Provenance.SELF_REPORTED),
    ]


# ---------------------------------------------------------------------------
# Empty input
# ---------------------------------------------------------------------------

class TestNoData:
    def test_empty_input_flagged(self, calibration):
        result = aggregate([], PeriodType.DAY, calibration)
        assert result.total_impact_minutes_for_period == 0
        assert result.has_data is False
        assert result.no_data is True
        assert result.battery_level_percent == 50
        assert result.to_dict()["status"] == "no_data"

    def test_balanced_zero_is_not_no_data(self, calibration, male_40, make_sample):
        # Sleep at the optimum has relative risk 1.0: zero impact, but real data
        result = aggregate([make_sample("sleep_hours", 7.5)], PeriodType.DAY, calibration, male_40)
        assert result.total_impact_minutes_for_period == pytest.approx(0)
        assert result.has_data is True
        assert result.to_dict()["status"] == "ok"

    def test_only_invalid_samples_is_no_data(self, calibration, make_sample):
        result = aggregate([make_sample("steps", math.nan)], PeriodType.DAY, calibration)
        assert result.has_data is False


# ---------------------------------------------------------------------------
# Additivity
# ---------------------------------------------------------------------------

class TestAdditivity:
    def test_total_is_sum_of_impacts(self, calibration, male_40, mixed_samples):
        result = aggregate(mixed_samples, PeriodType.DAY, calibration, male_40)
        expected = sum(
            impact_minutes(s.metric_kind, s.value, male_40, calibration) for s in mixed_samples
        )
        assert result.total_impact_minutes_for_period == pytest.approx(expected)
        assert set(result.metric_impacts) == {s.metric_kind for s in mixed_samples}

    def test_removing_kind_subtracts_exactly_its_impact(self, calibration, male_40, mixed_samples):
        full = aggregate(mixed_samples, PeriodType.DAY, calibration, male_40)
        without = aggregate(
            [s for s in mixed_samples if s.metric_kind != MetricKind.STEPS],
            PeriodType.DAY,
            calibration,
            male_40,
        )
        steps = full.metric_impacts[MetricKind.STEPS].minutes_per_day
        assert full.total_impact_minutes_for_period - without.total_impact_minutes_for_period == pytest.approx(steps)
        assert MetricKind.STEPS not in without.metric_impacts

    def test_period_scaling(self, calibration, male_40, mixed_samples):
        day = aggregate(mixed_samples, PeriodType.DAY, calibration, male_40)
        month = aggregate(mixed_samples, PeriodType.MONTH, calibration, male_40)
        year = aggregate(mixed_samples, PeriodType.YEAR, calibration, male_40)
        assert month.total_impact_minutes_for_period == pytest.approx(day.daily_impact_minutes * 30)
        assert year.total_impact_minutes_for_period == pytest.approx(day.daily_impact_minutes * 365)
        # Same per-day habits give the same battery level in every period
        assert month.battery_level_percent == pytest.approx(day.battery_level_percent)

    def test_order_independent(self, calibration, male_40, mixed_samples):
        shuffled = list(mixed_samples)
        random.Random(7).shuffle(shuffled)
        a = aggregate(mixed_samples, PeriodType.DAY, calibration, male_40)
        b = aggregate(shuffled, PeriodType.DAY, calibration, male_40)
        assert a.to_dict() == b.to_dict()

    def test_missing_calibration_entry_is_fatal(self, calibration, make_sample):
        metrics = {k: v for k, v in calibration.metrics.items() if k != "steps"}
        table = dataclasses.replace(calibration, metrics=metrics)
        with pytest.raises(CalibrationError):
            aggregate([make_sample("steps", 5000)], PeriodType.DAY, table)


# ---------------------------------------------------------------------------
# Battery
# ---------------------------------------------------------------------------

class TestBattery:
    def test_neutral_is_fifty(self):
        assert battery_level(0, PeriodType.DAY, 120) == 50

    def test_envelope_edges(self):
        assert battery_level(120, PeriodType.DAY, 120) == 100
        assert battery_level(-60, PeriodType.DAY, 120) == 25
        assert battery_level(-60 * 30, PeriodType.MONTH, 120) == 25

    def test_clamped(self):
        assert battery_level(10_000, PeriodType.DAY, 120) == 100
        assert battery_level(-10_000, PeriodType.YEAR, 120) >= 0
        assert battery_level(-10_000_000, PeriodType.YEAR, 120) == 0

    def test_aggregate_battery_in_range(self, calibration, male_40, make_sample):
        terrible = [
            make_sample("steps", 0),
            make_sample("smoking", 1, provenance=Provenance.SELF_REPORTED),
            make_sample("vo2_max", 10),
        ]
        result = aggregate(terrible, PeriodType.DAY, calibration, male_40)
        assert result.battery_level_percent == 0
        assert result.total_impact_minutes_for_period < 0


# ---------------------------------------------------------------------------
# Representative values
# ---------------------------------------------------------------------------

class TestRepresentativeValue:
    def test_cumulative_sums_within_day(self, make_sample):
        samples = [make_sample("steps", 2000), make_sample("steps", 3000, NOON + timedelta(hours=3))]
        assert representative_value(samples, "cumulative", PeriodType.DAY) == 5000

    def test_cumulative_averages_across_days(self, make_sample):
        samples = [
            make_sample("steps", 4000, NOON - timedelta(days=1)),
            make_sample("steps", 6000, NOON),
        ]
        assert representative_value(samples, "cumulative", PeriodType.MONTH) == 5000

    def test_state_uses_latest(self, make_sample):
        samples = [
            make_sample("resting_heart_rate", 60, NOON),
            make_sample("resting_heart_rate", 70, NOON - timedelta(days=2)),
        ]
        assert representative_value(samples, "state", PeriodType.MONTH) == 60

    def test_state_skips_non_finite(self, make_sample):
        samples = [
            make_sample("resting_heart_rate", 62, NOON - timedelta(hours=1)),
            make_sample("resting_heart_rate", math.inf, NOON),
        ]
        assert representative_value(samples, "state", PeriodType.DAY) == 62

    def test_ordinal_prefers_self_reported(self, make_sample):
        samples = [
            make_sample("stress", 3, NOON - timedelta(days=5), Provenance.SELF_REPORTED),
            make_sample("stress", 8, NOON, Provenance.DEVICE_MEASURED),
        ]
        assert representative_value(samples, "ordinal", PeriodType.DAY) == 3

    def test_ordinal_falls_back_to_any_provenance(self, make_sample):
        samples = [
            make_sample("stress", 4, NOON - timedelta(days=1)),
            make_sample("stress", 6, NOON),
        ]
        assert representative_value(samples, "ordinal", PeriodType.DAY) == 6

    def test_as_of_window(self, make_sample):
        samples = [
            make_sample("steps", 9000, NOON - timedelta(days=3)),
            make_sample("steps", 3000, NOON),
        ]
        assert representative_value(samples, "cumulative", PeriodType.DAY, as_of=NOON) == 3000
        assert representative_value(samples, "cumulative", PeriodType.MONTH, as_of=NOON) == 6000

    def test_as_of_excludes_future_samples(self, make_sample):
        samples = [make_sample("vo2_max", 45, NOON + timedelta(days=1))]
        assert representative_value(samples, "state", PeriodType.DAY, as_of=NOON) is None

    def test_ordinal_ignores_window_but_not_future(self, make_sample):
        samples = [
            make_sample("nutrition", 5, NOON - timedelta(days=90), Provenance.SELF_REPORTED),
            make_sample("nutrition", 9, NOON + timedelta(days=1), Provenance.SELF_REPORTED),
        ]
        assert representative_value(samples, "ordinal", PeriodType.DAY, as_of=NOON) == 5

    def test_naive_timestamps_treated_as_utc(self, make_sample):
        naive = NOON.replace(tzinfo=None)
        samples = [make_sample("steps", 1000, naive), make_sample("steps", 500, NOON)]
        assert representative_value(samples, "cumulative", PeriodType.DAY, as_of=NOON) == 1500

    def test_aggregate_reports_representative_values(self, calibration, male_40, make_sample):
        samples = [make_sample("steps", 2000), make_sample("steps", 2500, NOON + timedelta(hours=1))]
        result = aggregate(samples, PeriodType.DAY, calibration, male_40)
        assert result.representative_values[MetricKind.STEPS] == 4500
