"""Longevity projection: baseline expectancy adjusted by daily habit impact.

The same code path serves real samples and synthetic "optimal habits"
samples; only the input differs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime

from lifespan.core.calibration.models import CalibrationTable
from lifespan.domains.longevity.domain_logic.aggregator import aggregate
from lifespan.domains.longevity.domain_logic.baseline_table import baseline_years
from lifespan.domains.longevity.domain_logic.impact_calculator import resolve_age
from lifespan.domains.longevity.domain_logic.metric_models import (
    LifeProjection,
    MetricSample,
    PeriodType,
    Profile,
)
from lifespan.domains.longevity.domain_logic.optimal_metrics import (
    optimal_samples,
    personalized_improvement_samples,
)

logger = logging.getLogger(__name__)


def health_adjustment_years(
    daily_minutes: float, baseline_remaining_years: float, calibration: CalibrationTable
) -> float:
    """Convert a daily minutes impact into a lifetime years adjustment.

    The daily effect accrues over the remaining years, discounted by a
    behaviour-decay factor evaluated at the midpoint of that span since
    habits rarely hold unchanged for decades.
    """
    constants = calibration.constants
    remaining = max(1.0, baseline_remaining_years)
    decay = math.exp(-constants.behavior_decay_rate * remaining / 2.0)
    total_minutes = daily_minutes * constants.days_per_year * remaining * decay
    return total_minutes / constants.minutes_per_year


def project(
    samples: Iterable[MetricSample],
    profile: Profile | None,
    calibration: CalibrationTable,
) -> LifeProjection:
    """Project adjusted life expectancy from samples and a profile snapshot.

    A missing age is replaced by the calibrated default and the result is
    tagged ``derived_from_default``; a missing gender uses the sex-neutral
    baseline curve.
    """
    profile = profile or Profile()
    annotations: list[str] = []

    age, age_defaulted = resolve_age(profile, calibration)
    if age_defaulted:
        annotations.append(f"default_age: age {age:g} assumed")
    if profile.gender is None:
        annotations.append("default_gender: sex-neutral baseline curve used")

    baseline = baseline_years(age, profile.gender, calibration)
    daily = aggregate(samples, PeriodType.DAY, calibration, profile=profile).daily_impact_minutes
    adjustment = health_adjustment_years(daily, baseline - age, calibration)

    adjusted = baseline + adjustment
    years_remaining = max(0.0, adjusted - age)
    if adjusted > 0:
        percentage = max(0.0, min(100.0, years_remaining / adjusted * 100.0))
    else:
        percentage = 0.0

    logger.debug(
        "Projection: baseline=%.2f daily=%.2f adjustment=%.3f", baseline, daily, adjustment
    )
    return LifeProjection(
        baseline_life_expectancy_years=baseline,
        current_age_years=age,
        health_adjustment_years=adjustment,
        adjusted_life_expectancy_years=adjusted,
        years_remaining=years_remaining,
        percentage_remaining=percentage,
        daily_impact_minutes=daily,
        derived_from_default=age_defaulted,
        annotations=tuple(annotations),
    )


def project_optimal(
    profile: Profile | None,
    calibration: CalibrationTable,
    observed_at: datetime | None = None,
) -> LifeProjection:
    """Projection for a synthetic set of research-optimal habits."""
    return project(optimal_samples(profile, calibration, observed_at), profile, calibration)


def project_personalized_improvement(
    samples: Iterable[MetricSample],
    profile: Profile | None,
    calibration: CalibrationTable,
    observed_at: datetime | None = None,
) -> LifeProjection:
    """Projection if every below-neutral metric took its recommended action."""
    improved = personalized_improvement_samples(samples, profile, calibration, observed_at)
    return project(improved, profile, calibration)
