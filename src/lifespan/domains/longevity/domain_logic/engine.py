"""LongevityEngine: one calibration table bound to every engine operation.

The engine holds no mutable state, so a single instance can serve
concurrent callers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from functools import lru_cache
from pathlib import Path

from lifespan.core.calibration.loader import load_calibration_directory, load_calibration_file
from lifespan.core.calibration.models import CalibrationError, CalibrationTable
from lifespan.core.calibration.registry import CalibrationRegistry
from lifespan.core.calibration.validator import validate_calibration, validate_calibration_directory
from lifespan.domains.longevity.domain_logic import (
    aggregator,
    baseline_table,
    impact_calculator,
    neutral_solver,
    optimal_metrics,
    projection_engine,
    recommendation,
)
from lifespan.domains.longevity.domain_logic.metric_models import (
    AggregatedImpact,
    Gender,
    LifeProjection,
    MetricImpact,
    MetricKind,
    MetricSample,
    NeutralPointResult,
    PeriodType,
    Profile,
    Recommendation,
)

logger = logging.getLogger(__name__)

# Calibration YAML lives under src/lifespan/domains/longevity/calibration/
DEFAULT_CALIBRATION_FILE = (
    Path(__file__).resolve().parent.parent / "calibration" / "lifespan_impact.v1.yaml"
)
DEFAULT_CALIBRATION_DIR = DEFAULT_CALIBRATION_FILE.parent
CALIBRATION_ID = "lifespan_impact"


@lru_cache(maxsize=8)
def load_default_calibration(path: str | None = None) -> CalibrationTable:
    """Load and validate the calibration table (cached; tables are read-only).

    Raises:
        CalibrationError: the file is malformed or misses a metric kind.
    """
    source = Path(path) if path else DEFAULT_CALIBRATION_FILE
    table = load_calibration_file(source)
    errors = validate_calibration(table, kinds=[k.value for k in MetricKind])
    if errors:
        raise CalibrationError(f"Invalid calibration {source}: " + "; ".join(errors))
    logger.info("Loaded calibration %s v%s from %s", table.id, table.version, source)
    return table


def load_calibration_registry(directory: str | Path | None = None) -> CalibrationRegistry:
    """Validate every calibration table under ``directory`` and register them all.

    The whole directory is checked before anything is registered, so one
    bad file stops the server instead of being skipped.

    Raises:
        CalibrationError: a table is malformed, incomplete or duplicated.
    """
    source = Path(directory) if directory else DEFAULT_CALIBRATION_DIR
    _, errors = validate_calibration_directory(source, kinds=[k.value for k in MetricKind])
    if errors:
        raise CalibrationError(f"Invalid calibration directory {source}: " + "; ".join(errors))

    registry = CalibrationRegistry()
    count = load_calibration_directory(source, registry)
    logger.info("Loaded %d calibration tables from %s", count, source)
    return registry


def select_calibration(
    registry: CalibrationRegistry, version: str | None = None
) -> CalibrationTable:
    """Pick the lifespan table to serve: a pinned version, else the latest."""
    table = registry.get(CALIBRATION_ID, version)
    if table is None:
        wanted = f"{CALIBRATION_ID} v{version}" if version else CALIBRATION_ID
        available = ", ".join(registry.versions(CALIBRATION_ID)) or "none"
        raise CalibrationError(f"Calibration {wanted} is not loaded (available: {available})")
    return table


class LongevityEngine:
    """Facade over the impact, aggregation, projection and recommendation logic."""

    def __init__(self, calibration: CalibrationTable | None = None) -> None:
        self.calibration = calibration or load_default_calibration()

    # --- Impact ---

    def impact_of(self, metric_kind: MetricKind | str, value: float, profile: Profile | None = None) -> MetricImpact:
        return impact_calculator.impact_of(metric_kind, value, profile, self.calibration)

    def aggregate(
        self,
        samples: Iterable[MetricSample],
        period_type: PeriodType | str = PeriodType.DAY,
        profile: Profile | None = None,
        as_of: datetime | None = None,
    ) -> AggregatedImpact:
        return aggregator.aggregate(
            samples, PeriodType(period_type), self.calibration, profile=profile, as_of=as_of
        )

    # --- Projection ---

    def baseline_years(self, age_years: float, gender: Gender | None = None) -> float:
        return baseline_table.baseline_years(age_years, gender, self.calibration)

    def project(self, samples: Iterable[MetricSample], profile: Profile | None = None) -> LifeProjection:
        return projection_engine.project(samples, profile, self.calibration)

    def optimal_samples(
        self, profile: Profile | None = None, observed_at: datetime | None = None
    ) -> list[MetricSample]:
        return optimal_metrics.optimal_samples(profile, self.calibration, observed_at)

    def project_optimal(self, profile: Profile | None = None, observed_at: datetime | None = None) -> LifeProjection:
        return projection_engine.project_optimal(profile, self.calibration, observed_at)

    def project_personalized_improvement(
        self,
        samples: Iterable[MetricSample],
        profile: Profile | None = None,
        observed_at: datetime | None = None,
    ) -> LifeProjection:
        return projection_engine.project_personalized_improvement(
            samples, profile, self.calibration, observed_at
        )

    # --- Recommendations ---

    def solve_for_neutral(
        self,
        metric_kind: MetricKind | str,
        current_value: float,
        profile: Profile | None = None,
        search_bounds: tuple[float, float] | None = None,
    ) -> NeutralPointResult:
        return neutral_solver.solve_for_neutral(
            metric_kind, current_value, profile, self.calibration, search_bounds
        )

    def benefit_of(
        self, metric_kind: MetricKind | str, current_value: float, profile: Profile | None = None
    ) -> Recommendation:
        return recommendation.benefit_of(metric_kind, current_value, profile, self.calibration)
