"""Synthetic sample sets for what-if projections."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from lifespan.core.calibration.models import CalibrationTable
from lifespan.domains.longevity.domain_logic.aggregator import _aware, aggregate
from lifespan.domains.longevity.domain_logic.impact_calculator import optimal_value
from lifespan.domains.longevity.domain_logic.metric_models import (
    MetricKind,
    MetricSample,
    PeriodType,
    Profile,
    Provenance,
)
from lifespan.domains.longevity.domain_logic.recommendation import benefit_of


def _provenance_for(aggregation: str) -> Provenance:
    return Provenance.SELF_REPORTED if aggregation == "ordinal" else Provenance.DEVICE_MEASURED


def optimal_samples(
    profile: Profile | None,
    calibration: CalibrationTable,
    observed_at: datetime | None = None,
) -> list[MetricSample]:
    """One sample per calibrated kind at its research-optimal value.

    Body mass is derived from the optimal BMI and the profile height (or
    the reference height when none is known).
    """
    observed_at = observed_at or datetime.now(timezone.utc)
    samples = []
    for kind in MetricKind:
        if kind.value not in calibration.metrics:
            continue
        metric = calibration.metrics[kind.value]
        samples.append(
            MetricSample(
                metric_kind=kind,
                value=optimal_value(kind, profile, calibration),
                observed_at=observed_at,
                provenance=_provenance_for(metric.aggregation),
            )
        )
    return samples


def personalized_improvement_samples(
    samples: Iterable[MetricSample],
    profile: Profile | None,
    calibration: CalibrationTable,
    observed_at: datetime | None = None,
) -> list[MetricSample]:
    """Current samples with each below-neutral kind moved by its recommended action.

    Kinds at or above neutral, and kinds with no data, are left as they are.
    """
    samples = list(samples)
    current = aggregate(samples, PeriodType.DAY, calibration, profile=profile)

    targets: dict[MetricKind, float] = {}
    for kind, impact in current.metric_impacts.items():
        if impact.minutes_per_day >= 0:
            continue
        rec = benefit_of(kind, current.representative_values[kind], profile, calibration)
        if rec.target_value is not None:
            targets[kind] = rec.target_value

    improved = [s for s in samples if s.metric_kind not in targets]
    for kind, target in targets.items():
        kind_samples = [s for s in samples if s.metric_kind == kind]
        when = observed_at or max(kind_samples, key=lambda s: _aware(s.observed_at)).observed_at
        improved.append(
            MetricSample(
                metric_kind=kind,
                value=target,
                observed_at=when,
                provenance=_provenance_for(calibration.metric(kind).aggregation),
            )
        )
    return improved
