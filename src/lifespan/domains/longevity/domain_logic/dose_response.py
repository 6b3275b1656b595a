"""Dose-response curve evaluators.

Each evaluator takes a metric value (already clamped to its bounds) and the
``params`` block of a calibrated curve, and returns the curve response:
either minutes of lifespan per day or a relative mortality risk, depending
on the curve's ``output``. All formulas are deterministic and continuous.

Curve shapes:
    plateau:   convex penalty below ``low_threshold``, concave rise to
               ``plateau_threshold``, flat beyond it (steps, exercise).
    u_shaped:  peak at ``optimum``, piecewise-linear anchors walking outward
               on each side, so the two slopes can differ (sleep, BMI).
    ordinal:   piecewise-linear anchors over a 1-10 self-reported score.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any

from lifespan.core.calibration.models import CalibrationConstants, CurveSpec


def _interpolate(x: float, points: Sequence[Sequence[float]]) -> float:
    """Piecewise-linear interpolation over points sorted by x; flat outside."""
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    if x <= xs[0]:
        return ys[0]
    if x >= xs[-1]:
        return ys[-1]
    for i in range(1, len(xs)):
        if x <= xs[i]:
            x0, x1 = xs[i - 1], xs[i]
            y0, y1 = ys[i - 1], ys[i]
            if x1 == x0:
                return y1
            return y0 + (y1 - y0) * (x - x0) / (x1 - x0)
    return ys[-1]  # pragma: no cover


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

def plateau_response(x: float, params: dict[str, Any]) -> float:
    """Threshold-then-plateau curve.

    Below ``low_threshold`` the response degrades quadratically (by default)
    toward ``floor_response`` at ``floor``. Between the thresholds it rises
    with diminishing returns (natural-log shape) or linearly, and it holds
    at ``plateau_response`` from ``plateau_threshold`` on.
    """
    floor = float(params["floor"])
    low = float(params["low_threshold"])
    plateau = float(params["plateau_threshold"])
    y_floor = float(params["floor_response"])
    y_low = float(params["low_response"])
    y_plateau = float(params["plateau_response"])
    exponent = float(params.get("low_exponent", 2))

    if x >= plateau:
        return y_plateau
    if x < low:
        shortfall = (low - x) / (low - floor) if low > floor else 1.0
        return y_low + (y_floor - y_low) * min(1.0, shortfall) ** exponent

    progress = (x - low) / (plateau - low)
    if params.get("rise", "log") == "linear":
        shaped = progress
    else:
        # ln(1 + r(e - 1)) runs from 0 to 1 with a falling slope
        shaped = math.log1p(progress * (math.e - 1.0))
    return y_low + (y_plateau - y_low) * shaped


def u_shaped_response(x: float, params: dict[str, Any]) -> float:
    """Peak-at-optimum curve with independent slopes on each side."""
    optimum = float(params["optimum"])
    peak = float(params["optimum_response"])
    if x < optimum:
        side = [(optimum, peak)] + [(float(a), float(b)) for a, b in params.get("below", [])]
        # Anchors walk downward from the optimum; interpolate on ascending x
        return _interpolate(x, sorted(side))
    side = [(optimum, peak)] + [(float(a), float(b)) for a, b in params.get("above", [])]
    return _interpolate(x, side)


def ordinal_response(x: float, params: dict[str, Any]) -> float:
    """Anchor interpolation over a 1-10 score."""
    return _interpolate(x, params["anchors"])


CURVE_EVALUATORS: dict[str, Callable[[float, dict[str, Any]], float]] = {
    "plateau": plateau_response,
    "u_shaped": u_shaped_response,
    "ordinal": ordinal_response,
}


def evaluate_curve(curve: CurveSpec, x: float) -> float:
    """Raw response of ``curve`` at ``x`` (minutes or relative risk)."""
    try:
        evaluator = CURVE_EVALUATORS[curve.shape]
    except KeyError:
        raise ValueError(f"Unknown curve shape: {curve.shape!r}") from None
    return evaluator(x, curve.params)


# ---------------------------------------------------------------------------
# Relative risk conversion
# ---------------------------------------------------------------------------

def relative_risk_to_minutes(
    relative_risk: float,
    age_years: float,
    impact_scaling: float,
    constants: CalibrationConstants,
) -> float:
    """Convert a relative mortality risk into lifespan minutes per day.

    A risk reduction of (1 - rr), scaled by the metric's share of all-cause
    mortality, is applied to a reference lifespan and spread over the days
    the person has left to live it. Younger users spread the same effect
    over more days, so their daily figure is smaller.
    """
    reference = constants.reference_lifespan_years
    remaining_years = max(1.0, reference - age_years)
    lifetime_minutes = (1.0 - relative_risk) * impact_scaling * reference * constants.minutes_per_year
    return lifetime_minutes / (remaining_years * constants.days_per_year)


def curve_minutes(
    curve: CurveSpec, x: float, age_years: float, constants: CalibrationConstants
) -> float:
    """Evaluate ``curve`` at ``x`` and express the result in minutes per day."""
    response = evaluate_curve(curve, x)
    if curve.output == "relative_risk":
        return relative_risk_to_minutes(response, age_years, curve.impact_scaling, constants)
    return response


# ---------------------------------------------------------------------------
# Value transforms
# ---------------------------------------------------------------------------

def _bmi_from_kg(weight_kg: float, height_cm: float) -> float:
    height_m = height_cm / 100.0
    return weight_kg / (height_m * height_m)


def _kg_from_bmi(bmi: float, height_cm: float) -> float:
    height_m = height_cm / 100.0
    return bmi * height_m * height_m


# name -> (forward: raw -> curve space, inverse: curve space -> raw)
VALUE_TRANSFORMS: dict[str, tuple[Callable[[float, float], float], Callable[[float, float], float]]] = {
    "bmi": (_bmi_from_kg, _kg_from_bmi),
}
