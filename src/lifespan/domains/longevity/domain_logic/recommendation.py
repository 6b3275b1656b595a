"""Recommendation benefit calculator.

For a metric below neutral, find the value that would break even, cap the
change at one realistic action, and report the minutes that action buys.
For a metric already at or above neutral there is nothing to break even
on, so a flat share of the current benefit is reported instead.
"""

from __future__ import annotations

import logging
import math

from lifespan.core.calibration.models import ActionTier, CalibrationTable, MetricCalibration
from lifespan.domains.longevity.domain_logic.impact_calculator import (
    impact_of,
    optimal_value,
)
from lifespan.domains.longevity.domain_logic.metric_models import (
    MetricKind,
    Profile,
    Recommendation,
)
from lifespan.domains.longevity.domain_logic.neutral_solver import solve_for_neutral

logger = logging.getLogger(__name__)


def select_action(metric: MetricCalibration, needed_change: float) -> ActionTier | None:
    """Pick the action tier for a signed required change.

    Tiers are tried in order; the first one for the right direction whose
    ``up_to`` covers the change wins, else the last tier for that direction.
    """
    direction = "increase" if needed_change > 0 else "decrease"
    tiers = [t for t in metric.actions if t.direction in (None, direction)]
    if not tiers:
        return None
    size = abs(needed_change)
    for tier in tiers:
        if tier.up_to is None or size <= tier.up_to:
            return tier
    return tiers[-1]


def benefit_of(
    metric_kind: MetricKind | str,
    current_value: float,
    profile: Profile | None,
    calibration: CalibrationTable,
) -> Recommendation:
    """Quantify the benefit of one realistic action for ``metric_kind``."""
    kind = MetricKind.parse(metric_kind)
    metric = calibration.metric(kind)
    current = impact_of(kind, current_value, profile, calibration)
    base = current.evaluated_value

    if current.minutes_per_day >= 0:
        fraction = calibration.constants.positive_improvement_fraction
        return Recommendation(
            metric_kind=kind,
            action_description=metric.improve_further or f"Increase {metric.display_name.lower()} further",
            incremental_minutes=fraction * current.minutes_per_day,
            current_value=current.value,
            current_impact_minutes=current.minutes_per_day,
        )

    neutral = solve_for_neutral(kind, base, profile, calibration)
    needed = neutral.value - base
    if needed == 0:
        needed = optimal_value(kind, profile, calibration) - base

    tier = select_action(metric, needed)
    if tier is None or needed == 0:
        logger.info("No action tier applies to %s (needed change %g)", kind.value, needed)
        return Recommendation(
            metric_kind=kind,
            action_description=f"Keep tracking your {metric.display_name.lower()}",
            incremental_minutes=0.0,
            current_value=current.value,
            current_impact_minutes=current.minutes_per_day,
            target_value=base,
            neutral_point=neutral,
        )

    delta = math.copysign(min(abs(needed), tier.max_delta), needed)
    target = base + delta
    improved = impact_of(kind, target, profile, calibration)
    return Recommendation(
        metric_kind=kind,
        action_description=tier.description.format(delta=abs(delta)),
        incremental_minutes=improved.minutes_per_day - current.minutes_per_day,
        current_value=current.value,
        current_impact_minutes=current.minutes_per_day,
        action_delta=delta,
        target_value=target,
        neutral_point=neutral,
    )
