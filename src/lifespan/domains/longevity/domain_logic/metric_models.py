"""Lifespan impact models: metric samples, profiles and engine results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class MetricKind(str, Enum):
    """Closed set of health metrics the engine knows how to score.

    Declaration order is the summation order used by the aggregator.
    """

    STEPS = "steps"
    EXERCISE_MINUTES = "exercise_minutes"
    SLEEP_HOURS = "sleep_hours"
    RESTING_HEART_RATE = "resting_heart_rate"
    HEART_RATE_VARIABILITY = "heart_rate_variability"
    BODY_MASS = "body_mass"
    ACTIVE_ENERGY = "active_energy"
    VO2_MAX = "vo2_max"
    OXYGEN_SATURATION = "oxygen_saturation"
    SMOKING = "smoking"
    ALCOHOL = "alcohol"
    STRESS = "stress"
    NUTRITION = "nutrition"
    SOCIAL_CONNECTION = "social_connection"

    @classmethod
    def parse(cls, value: str | MetricKind) -> MetricKind:
        """Parse a kind from its value, accepting hyphens and mixed case."""
        if isinstance(value, MetricKind):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown metric kind {value!r} (expected one of: {valid})") from None


class Provenance(str, Enum):
    DEVICE_MEASURED = "device_measured"
    SELF_REPORTED = "self_reported"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class PeriodType(str, Enum):
    """Reporting period for aggregated impact."""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"

    @property
    def multiplier(self) -> int:
        """Days-per-period factor applied to daily minutes."""
        return _PERIOD_MULTIPLIERS[self]

    @property
    def days(self) -> int:
        """Length of the sample window for this period."""
        return _PERIOD_MULTIPLIERS[self]


_PERIOD_MULTIPLIERS = {
    PeriodType.DAY: 1,
    PeriodType.MONTH: 30,
    PeriodType.YEAR: 365,
}


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricSample:
    """One observation of a health metric, owned by the caller."""

    metric_kind: MetricKind
    value: float
    observed_at: datetime
    provenance: Provenance = Provenance.DEVICE_MEASURED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetricSample:
        """Build a sample from loose JSON-style input."""
        observed_at = data.get("observed_at")
        if isinstance(observed_at, str):
            observed_at = datetime.fromisoformat(observed_at.replace("Z", "+00:00"))
        if not isinstance(observed_at, datetime):
            raise ValueError("observed_at must be an ISO 8601 timestamp")
        return cls(
            metric_kind=MetricKind.parse(data["metric_kind"]),
            value=float(data["value"]),
            observed_at=observed_at,
            provenance=Provenance(data.get("provenance") or Provenance.DEVICE_MEASURED.value),
        )


@dataclass(frozen=True)
class Profile:
    """Per-call profile snapshot. Every field is optional."""

    age_years: float | None = None
    gender: Gender | None = None
    height_cm: float | None = None
    weight_kg: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Profile:
        if not data:
            return cls()
        gender = data.get("gender")
        if gender in (None, "", "unspecified", "prefer_not_to_say"):
            parsed_gender = None
        else:
            parsed_gender = Gender(str(gender).lower())
        return cls(
            age_years=_optional_float(data.get("age_years")),
            gender=parsed_gender,
            height_cm=_optional_float(data.get("height_cm")),
            weight_kg=_optional_float(data.get("weight_kg")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "age_years": self.age_years,
            "gender": self.gender.value if self.gender else None,
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
        }


def _optional_float(val: Any) -> float | None:
    if val is None or val == "":
        return None
    return float(val)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricImpact:
    """Lifespan effect of one metric value, in signed minutes per day."""

    metric_kind: MetricKind
    value: float                  # as supplied by the caller
    evaluated_value: float        # after clamping to physiological bounds
    minutes_per_day: float        # positive = lifespan-extending
    comparison_label: str
    study_reference: str | None = None
    annotations: tuple[str, ...] = ()
    clamped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric_kind": self.metric_kind.value,
            "value": self.value,
            "evaluated_value": self.evaluated_value,
            "minutes_per_day": round(self.minutes_per_day, 4),
            "comparison_label": self.comparison_label,
            "study_reference": self.study_reference,
            "annotations": list(self.annotations),
            "clamped": self.clamped,
        }


@dataclass(frozen=True)
class AggregatedImpact:
    """Period-level impact across every metric that had data."""

    period_type: PeriodType
    total_impact_minutes_for_period: float
    daily_impact_minutes: float
    battery_level_percent: float
    has_data: bool
    metric_impacts: dict[MetricKind, MetricImpact] = field(default_factory=dict)
    representative_values: dict[MetricKind, float] = field(default_factory=dict)

    @property
    def no_data(self) -> bool:
        return not self.has_data

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_type": self.period_type.value,
            "total_impact_minutes_for_period": round(self.total_impact_minutes_for_period, 4),
            "daily_impact_minutes": round(self.daily_impact_minutes, 4),
            "battery_level_percent": round(self.battery_level_percent, 2),
            "has_data": self.has_data,
            "status": "ok" if self.has_data else "no_data",
            "metric_impacts": {
                kind.value: impact.to_dict() for kind, impact in self.metric_impacts.items()
            },
            "representative_values": {
                kind.value: value for kind, value in self.representative_values.items()
            },
        }


@dataclass(frozen=True)
class LifeProjection:
    """Baseline expectancy adjusted by the long-run effect of daily habits."""

    baseline_life_expectancy_years: float
    current_age_years: float
    health_adjustment_years: float
    adjusted_life_expectancy_years: float
    years_remaining: float
    percentage_remaining: float
    daily_impact_minutes: float = 0.0
    derived_from_default: bool = False
    annotations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseline_life_expectancy_years": round(self.baseline_life_expectancy_years, 3),
            "current_age_years": self.current_age_years,
            "health_adjustment_years": round(self.health_adjustment_years, 3),
            "adjusted_life_expectancy_years": round(self.adjusted_life_expectancy_years, 3),
            "years_remaining": round(self.years_remaining, 3),
            "percentage_remaining": round(self.percentage_remaining, 2),
            "daily_impact_minutes": round(self.daily_impact_minutes, 4),
            "derived_from_default": self.derived_from_default,
            "annotations": list(self.annotations),
        }


@dataclass(frozen=True)
class NeutralPointResult:
    """Metric value at which impact crosses zero, or a tagged fallback."""

    metric_kind: MetricKind
    value: float
    converged: bool
    fallback_used: bool
    iterations: int
    impact_minutes: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric_kind": self.metric_kind.value,
            "value": round(self.value, 4),
            "converged": self.converged,
            "fallback_used": self.fallback_used,
            "iterations": self.iterations,
            "impact_minutes": round(self.impact_minutes, 4),
        }


@dataclass(frozen=True)
class Recommendation:
    """A bounded, realistic action and the daily minutes it would add."""

    metric_kind: MetricKind
    action_description: str
    incremental_minutes: float
    current_value: float
    current_impact_minutes: float
    action_delta: float = 0.0
    target_value: float | None = None
    neutral_point: NeutralPointResult | None = None

    def as_pair(self) -> tuple[str, float]:
        return self.action_description, self.incremental_minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric_kind": self.metric_kind.value,
            "action_description": self.action_description,
            "incremental_minutes": round(self.incremental_minutes, 4),
            "current_value": self.current_value,
            "current_impact_minutes": round(self.current_impact_minutes, 4),
            "action_delta": round(self.action_delta, 4),
            "target_value": None if self.target_value is None else round(self.target_value, 4),
            "neutral_point": self.neutral_point.to_dict() if self.neutral_point else None,
        }
