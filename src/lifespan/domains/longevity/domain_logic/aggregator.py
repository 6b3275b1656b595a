"""Impact aggregator: a sample set for a period -> total impact and battery level.

Representative values per kind:
    cumulative (steps, exercise, energy, sleep): daily totals averaged over
        the days that have data, i.e. the period total per day.
    state (heart rate, HRV, body mass, VO2 max, SpO2): most recent reading.
    ordinal (lifestyle scores): latest self-reported value, falling back to
        the latest value of any provenance.

Kinds without samples are left out of the sum entirely.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from lifespan.core.calibration.models import CalibrationTable
from lifespan.domains.longevity.domain_logic.impact_calculator import impact_of
from lifespan.domains.longevity.domain_logic.metric_models import (
    AggregatedImpact,
    MetricImpact,
    MetricKind,
    MetricSample,
    PeriodType,
    Profile,
    Provenance,
)

logger = logging.getLogger(__name__)

NEUTRAL_BATTERY_PERCENT = 50.0


def _aware(dt: datetime) -> datetime:
    """Treat naive timestamps as UTC so mixed inputs stay comparable."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def _latest(samples: list[MetricSample]) -> MetricSample:
    # sorted() is stable, so the last of equal timestamps wins
    return sorted(samples, key=lambda s: _aware(s.observed_at))[-1]


def representative_value(
    samples: list[MetricSample],
    aggregation: str,
    period_type: PeriodType,
    as_of: datetime | None = None,
) -> float | None:
    """Collapse one kind's samples into the value scored for the period.

    Returns None when nothing valid falls inside the period.
    """
    valid = [s for s in samples if math.isfinite(s.value)]

    if aggregation == "ordinal":
        if as_of is not None:
            cutoff = _aware(as_of)
            valid = [s for s in valid if _aware(s.observed_at) <= cutoff]
        if not valid:
            return None
        reported = [s for s in valid if s.provenance == Provenance.SELF_REPORTED]
        return _latest(reported or valid).value

    if as_of is not None:
        end = _aware(as_of)
        start = end - timedelta(days=period_type.days)
        valid = [s for s in valid if start < _aware(s.observed_at) <= end]
    if not valid:
        return None

    if aggregation == "cumulative":
        per_day: dict = defaultdict(float)
        for s in valid:
            per_day[_aware(s.observed_at).date()] += s.value
        return sum(per_day.values()) / len(per_day)

    return _latest(valid).value


def battery_level(total_minutes: float, period_type: PeriodType, envelope_minutes_per_day: float) -> float:
    """Map a period total onto 0-100, with 50 meaning net neutral.

    The envelope is symmetric: +envelope per day is 100, -envelope is 0.
    """
    envelope = envelope_minutes_per_day * period_type.multiplier
    level = NEUTRAL_BATTERY_PERCENT + NEUTRAL_BATTERY_PERCENT * total_minutes / envelope
    return max(0.0, min(100.0, level))


def aggregate(
    samples: Iterable[MetricSample],
    period_type: PeriodType,
    calibration: CalibrationTable,
    profile: Profile | None = None,
    as_of: datetime | None = None,
) -> AggregatedImpact:
    """Aggregate per-metric impacts for one period.

    An empty (or entirely invalid) sample set is reported with
    ``has_data=False``, which is distinct from a balanced total of zero.
    """
    period_type = PeriodType(period_type)
    by_kind: dict[MetricKind, list[MetricSample]] = defaultdict(list)
    for sample in samples:
        by_kind[sample.metric_kind].append(sample)

    impacts: dict[MetricKind, MetricImpact] = {}
    values: dict[MetricKind, float] = {}
    # Declaration order keeps the floating-point sum reproducible
    for kind in MetricKind:
        kind_samples = by_kind.get(kind)
        if not kind_samples:
            continue
        metric = calibration.metric(kind)
        value = representative_value(kind_samples, metric.aggregation, period_type, as_of)
        if value is None:
            logger.debug("No valid %s samples in the %s period", kind.value, period_type.value)
            continue
        values[kind] = value
        impacts[kind] = impact_of(kind, value, profile, calibration)

    daily = 0.0
    for impact in impacts.values():
        daily += impact.minutes_per_day
    total = daily * period_type.multiplier

    if not impacts:
        return AggregatedImpact(
            period_type=period_type,
            total_impact_minutes_for_period=0.0,
            daily_impact_minutes=0.0,
            battery_level_percent=NEUTRAL_BATTERY_PERCENT,
            has_data=False,
        )

    return AggregatedImpact(
        period_type=period_type,
        total_impact_minutes_for_period=total,
        daily_impact_minutes=daily,
        battery_level_percent=battery_level(
            total, period_type, calibration.constants.battery_envelope_minutes_per_day
        ),
        has_data=True,
        metric_impacts=impacts,
        representative_values=values,
    )
