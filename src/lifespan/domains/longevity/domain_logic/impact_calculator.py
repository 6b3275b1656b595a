"""Metric impact calculators: metric value -> signed lifespan minutes per day.

Every metric kind shares one code path. The calibration entry decides the
curve shape, its anchors, whether the response is a relative risk, and
whether the raw value is transformed first (body mass is scored as BMI).
Out-of-range inputs are clamped and annotated rather than rejected.
"""

from __future__ import annotations

import logging
import math

from lifespan.core.calibration.models import CalibrationTable, MetricCalibration
from lifespan.domains.longevity.domain_logic.dose_response import (
    VALUE_TRANSFORMS,
    curve_minutes,
)
from lifespan.domains.longevity.domain_logic.metric_models import (
    MetricImpact,
    MetricKind,
    Profile,
)

logger = logging.getLogger(__name__)

LABEL_OPTIMAL = "optimal"
LABEL_BELOW = "below optimal"
LABEL_WELL_BELOW = "well below optimal"
LABEL_ABOVE = "above optimal"


# ---------------------------------------------------------------------------
# Profile defaults
# ---------------------------------------------------------------------------

def resolve_age(profile: Profile | None, calibration: CalibrationTable) -> tuple[float, bool]:
    """Return (age_years, defaulted)."""
    if profile is not None and profile.age_years is not None and math.isfinite(profile.age_years):
        return max(0.0, profile.age_years), False
    return calibration.profile_defaults.age_years, True


def resolve_height(profile: Profile | None, calibration: CalibrationTable) -> tuple[float, bool]:
    """Return (height_cm, defaulted), using the gender reference height when absent."""
    if profile is not None and profile.height_cm and profile.height_cm > 0:
        return profile.height_cm, False
    heights = calibration.profile_defaults.reference_height_cm
    gender = profile.gender.value if profile is not None and profile.gender else "neutral"
    if gender in heights:
        return heights[gender], True
    if heights:
        return sum(heights.values()) / len(heights), True
    return 170.0, True


# ---------------------------------------------------------------------------
# Value space conversion
# ---------------------------------------------------------------------------

def to_curve_value(
    metric: MetricCalibration, value: float, profile: Profile | None, calibration: CalibrationTable
) -> tuple[float, list[str]]:
    """Map a raw (already clamped) value into the space its curve is defined on."""
    if metric.value_transform is None:
        return value, []
    forward, _ = VALUE_TRANSFORMS[metric.value_transform]
    height, defaulted = resolve_height(profile, calibration)
    notes = [f"default_height: {height:.1f} cm reference height used"] if defaulted else []
    return forward(value, height), notes


def to_raw_value(
    metric: MetricCalibration, curve_value: float, profile: Profile | None, calibration: CalibrationTable
) -> float:
    """Inverse of :func:`to_curve_value`."""
    if metric.value_transform is None:
        return curve_value
    _, inverse = VALUE_TRANSFORMS[metric.value_transform]
    height, _ = resolve_height(profile, calibration)
    return inverse(curve_value, height)


def optimal_value(
    metric_kind: MetricKind | str, profile: Profile | None, calibration: CalibrationTable
) -> float:
    """Research-optimal value of a metric, in the metric's own units."""
    metric = calibration.metric(metric_kind)
    return to_raw_value(metric, metric.optimal_value, profile, calibration)


def fallback_value(
    metric_kind: MetricKind | str, profile: Profile | None, calibration: CalibrationTable
) -> float:
    """Documented solver fallback of a metric, in the metric's own units."""
    metric = calibration.metric(metric_kind)
    return to_raw_value(metric, metric.solver_fallback, profile, calibration)


# ---------------------------------------------------------------------------
# Impact
# ---------------------------------------------------------------------------

def impact_of(
    metric_kind: MetricKind | str,
    value: float,
    profile: Profile | None,
    calibration: CalibrationTable,
) -> MetricImpact:
    """Compute the lifespan impact of one metric value.

    Raises:
        CalibrationError: the table has no entry for ``metric_kind``.
        ValueError: ``value`` is NaN.
    """
    kind = MetricKind.parse(metric_kind)
    metric = calibration.metric(kind)
    value = float(value)
    if math.isnan(value):
        raise ValueError(f"{kind.value}: value must be a number, got NaN")

    annotations: list[str] = []
    lo, hi = metric.bounds
    evaluated = min(hi, max(lo, value))
    clamped = evaluated != value
    if clamped:
        annotations.append(
            f"clamped: {value:g} {metric.unit} is outside [{lo:g}, {hi:g}], evaluated at {evaluated:g}"
        )
        logger.debug("Clamped %s from %s to %s", kind.value, value, evaluated)

    age, age_defaulted = resolve_age(profile, calibration)
    if age_defaulted and metric.curve.output == "relative_risk":
        annotations.append(f"default_age: age {age:g} assumed")

    x, notes = to_curve_value(metric, evaluated, profile, calibration)
    annotations.extend(notes)

    minutes = curve_minutes(metric.curve, x, age, calibration.constants)
    return MetricImpact(
        metric_kind=kind,
        value=value,
        evaluated_value=evaluated,
        minutes_per_day=minutes,
        comparison_label=comparison_label(metric, x, minutes),
        study_reference=metric.study_reference,
        annotations=tuple(annotations),
        clamped=clamped,
    )


def impact_minutes(
    metric_kind: MetricKind | str,
    value: float,
    profile: Profile | None,
    calibration: CalibrationTable,
) -> float:
    """Shorthand for ``impact_of(...).minutes_per_day``."""
    return impact_of(metric_kind, value, profile, calibration).minutes_per_day


def comparison_label(metric: MetricCalibration, curve_value: float, minutes: float) -> str:
    """Describe where ``curve_value`` sits relative to the metric's optimum."""
    band = metric.curve.params.get("band")
    if band is not None:
        lo, hi = float(band[0]), float(band[1])
        if lo <= curve_value <= hi:
            return LABEL_OPTIMAL
        if curve_value > hi:
            return LABEL_ABOVE
    elif curve_value >= metric.optimal_value:
        return LABEL_OPTIMAL
    return LABEL_BELOW if minutes >= 0 else LABEL_WELL_BELOW
