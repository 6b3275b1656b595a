"""Data models for the versioned lifespan calibration table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class CalibrationError(Exception):
    """Calibration table is malformed or has no entry for a requested metric."""


@dataclass(frozen=True)
class CurveSpec:
    """Where a dose-response curve's features sit.

    ``shape`` selects the evaluator; ``params`` holds the shape-specific
    anchors and thresholds exactly as written in YAML.
    """

    shape: str
    output: str = "minutes"          # 'minutes' | 'relative_risk'
    impact_scaling: float = 1.0      # only used for relative_risk output
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionTier:
    """One realistic behaviour change, used to cap recommendation deltas."""

    max_delta: float
    description: str
    up_to: float | None = None       # largest needed change this tier covers
    direction: str | None = None     # 'increase' | 'decrease' | None (either)


@dataclass(frozen=True)
class MetricCalibration:
    """Calibration entry for a single metric kind."""

    kind: str
    display_name: str
    unit: str
    aggregation: str                 # 'cumulative' | 'state' | 'ordinal'
    bounds: tuple[float, float]
    optimal_value: float
    curve: CurveSpec
    fallback_value: float | None = None
    value_transform: str | None = None
    study_reference: str | None = None
    actions: tuple[ActionTier, ...] = ()
    improve_further: str = ""

    @property
    def solver_fallback(self) -> float:
        return self.optimal_value if self.fallback_value is None else self.fallback_value


@dataclass(frozen=True)
class CalibrationConstants:
    """Global conversion constants shared by every calculator."""

    minutes_per_year: float = 525960.0
    days_per_year: float = 365.25
    reference_lifespan_years: float = 78.0
    battery_envelope_minutes_per_day: float = 120.0
    behavior_decay_rate: float = 0.02
    positive_improvement_fraction: float = 0.2
    solver_tolerance_minutes: float = 0.5
    solver_max_iterations: int = 20


@dataclass(frozen=True)
class ProfileDefaults:
    """Values substituted when a profile is incomplete."""

    age_years: float = 30.0
    reference_height_cm: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CalibrationTable:
    """A complete, versioned calibration table."""

    id: str
    version: str
    description: str
    constants: CalibrationConstants
    profile_defaults: ProfileDefaults
    life_tables: dict[str, dict[float, float]]
    metrics: dict[str, MetricCalibration]

    def metric(self, kind: Any) -> MetricCalibration:
        """Return the entry for ``kind`` or raise CalibrationError."""
        key = getattr(kind, "value", kind)
        try:
            return self.metrics[key]
        except KeyError:
            raise CalibrationError(
                f"No calibration entry for metric kind {key!r} in table {self.id} v{self.version}"
            ) from None

    def summary(self) -> dict[str, Any]:
        """Compact description suitable for discovery resources."""
        return {
            "id": self.id,
            "version": self.version,
            "description": self.description,
            "metrics": {
                key: {
                    "display_name": m.display_name,
                    "unit": m.unit,
                    "aggregation": m.aggregation,
                    "shape": m.curve.shape,
                    "bounds": list(m.bounds),
                    "optimal_value": m.optimal_value,
                    "study_reference": m.study_reference,
                }
                for key, m in self.metrics.items()
            },
            "battery_envelope_minutes_per_day": self.constants.battery_envelope_minutes_per_day,
        }
