"""Neutral-point solver: the metric value at which impact crosses zero.

Bisection over a bracket on the "needs improvement" side of a curve.
The bracket may run in either direction (resting heart rate improves
downward), so the search follows signs rather than ordering.
"""

from __future__ import annotations

import logging

from lifespan.core.calibration.models import CalibrationTable
from lifespan.domains.longevity.domain_logic.impact_calculator import (
    fallback_value,
    impact_minutes,
    optimal_value,
)
from lifespan.domains.longevity.domain_logic.metric_models import (
    MetricKind,
    NeutralPointResult,
    Profile,
)

logger = logging.getLogger(__name__)


def solve_for_neutral(
    metric_kind: MetricKind | str,
    current_value: float,
    profile: Profile | None,
    calibration: CalibrationTable,
    search_bounds: tuple[float, float] | None = None,
) -> NeutralPointResult:
    """Find where ``impact_of(metric_kind, x)`` is within tolerance of zero.

    The default bracket runs from ``current_value`` to the research-optimal
    value. When the bracket holds no sign change, or the iteration budget
    runs out first, the metric's documented fallback is returned with
    ``fallback_used=True``.
    """
    kind = MetricKind.parse(metric_kind)
    constants = calibration.constants
    tolerance = constants.solver_tolerance_minutes
    max_iterations = int(constants.solver_max_iterations)

    def f(x: float) -> float:
        return impact_minutes(kind, x, profile, calibration)

    if search_bounds is None:
        a, b = float(current_value), optimal_value(kind, profile, calibration)
    else:
        a, b = float(search_bounds[0]), float(search_bounds[1])

    fa, fb = f(a), f(b)
    for endpoint, value in ((a, fa), (b, fb)):
        if abs(value) <= tolerance:
            return NeutralPointResult(kind, endpoint, True, False, 0, value)

    iterations = 0
    if (fa < 0) != (fb < 0):
        while iterations < max_iterations:
            iterations += 1
            mid = (a + b) / 2.0
            fm = f(mid)
            if abs(fm) <= tolerance:
                return NeutralPointResult(kind, mid, True, False, iterations, fm)
            if (fm < 0) == (fa < 0):
                a, fa = mid, fm
            else:
                b, fb = mid, fm
        reason = f"no convergence within {max_iterations} iterations"
    else:
        reason = "no zero crossing in bracket"

    fallback = fallback_value(kind, profile, calibration)
    logger.info(
        "Neutral point for %s: %s [%g, %g]; using fallback %g",
        kind.value, reason, a, b, fallback,
    )
    return NeutralPointResult(kind, fallback, False, True, iterations, f(fallback))
