"""MCP tools exposing the lifespan impact engine.

All tools are deterministic: no device access, no storage. Samples arrive
as tool arguments and every result is returned as a JSON string.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

if TYPE_CHECKING:
    from lifespan.domains.longevity.domain_logic.engine import LongevityEngine

from lifespan.domains.longevity.domain_logic.formatting import format_benefit, format_impact
from lifespan.domains.longevity.domain_logic.metric_models import (
    MetricKind,
    MetricSample,
    PeriodType,
    Profile,
    Provenance,
)

logger = logging.getLogger(__name__)

SCENARIOS = ("current", "optimal", "personalized")


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_period(value: str | None) -> PeriodType:
    if value in (None, ""):
        return PeriodType.DAY
    try:
        return PeriodType(str(value).lower())
    except ValueError:
        raise ValueError("period must be one of: day | month | year") from None


def _parse_profile(value: dict[str, Any] | None) -> Profile:
    try:
        return Profile.from_dict(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid profile: {exc}") from None


def _parse_timestamp(value: str | None) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid ISO 8601 timestamp: {value!r}") from None


def _parse_samples(raw: list[dict[str, Any]] | None) -> list[MetricSample]:
    samples = []
    for i, item in enumerate(raw or []):
        try:
            samples.append(MetricSample.from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid sample at index {i}: {exc}") from None
    return samples


def _with_profile_weight(samples: list[MetricSample], profile: Profile) -> list[MetricSample]:
    """Use the profile weight as a body-mass reading when no sample has one."""
    if profile.weight_kg is None:
        return samples
    if any(s.metric_kind == MetricKind.BODY_MASS for s in samples):
        return samples
    return samples + [
        MetricSample(
            metric_kind=MetricKind.BODY_MASS,
            value=profile.weight_kg,
            observed_at=datetime.now(timezone.utc),
            provenance=Provenance.SELF_REPORTED,
        )
    ]


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_longevity_tools(mcp: FastMCP, engine: LongevityEngine) -> None:
    """Register lifespan impact tools on the MCP server."""

    @mcp.tool
    def metric_impact(
        metric_kind: str,
        value: float,
        profile: dict[str, Any] | None = None,
    ) -> str:
        """Compute the lifespan impact of a single metric value.

        Args:
            metric_kind: Metric to score (e.g., 'steps', 'sleep_hours', 'stress').
            value: Metric value in its native unit (steps, hours, bpm, kg, 1-10 score...).
            profile: Optional {age_years, gender, height_cm, weight_kg}.
        """
        kind = MetricKind.parse(metric_kind)
        impact = engine.impact_of(kind, value, _parse_profile(profile))
        result = impact.to_dict()
        result["formatted"] = format_impact(impact.minutes_per_day)
        return json.dumps(result)

    @mcp.tool
    def aggregate_impact(
        samples: list[dict[str, Any]],
        period: str = "day",
        profile: dict[str, Any] | None = None,
        as_of: str | None = None,
    ) -> str:
        """Aggregate metric samples into a period impact and battery level.

        Args:
            samples: List of {metric_kind, value, observed_at, provenance}.
            period: Reporting period: 'day', 'month' or 'year'.
            profile: Optional {age_years, gender, height_cm, weight_kg}.
            as_of: Optional ISO 8601 end of the period window.
        """
        period_type = _parse_period(period)
        aggregated = engine.aggregate(
            _parse_samples(samples),
            period_type,
            profile=_parse_profile(profile),
            as_of=_parse_timestamp(as_of),
        )
        result = aggregated.to_dict()
        result["formatted_total"] = format_impact(aggregated.total_impact_minutes_for_period)
        return json.dumps(result)

    @mcp.tool
    def life_projection(
        samples: list[dict[str, Any]] | None = None,
        profile: dict[str, Any] | None = None,
        scenario: str = "current",
    ) -> str:
        """Project adjusted life expectancy from current or what-if habits.

        Args:
            samples: List of {metric_kind, value, observed_at, provenance}.
            profile: Optional {age_years, gender, height_cm, weight_kg}.
                A missing age falls back to a default and is flagged.
            scenario: 'current' (samples as given), 'optimal' (research-optimal
                habits) or 'personalized' (samples after each recommended action).
        """
        if scenario not in SCENARIOS:
            raise ValueError("scenario must be one of: current | optimal | personalized")
        parsed_profile = _parse_profile(profile)
        parsed_samples = _with_profile_weight(_parse_samples(samples), parsed_profile)

        if scenario == "optimal":
            projection = engine.project_optimal(parsed_profile)
        elif scenario == "personalized":
            projection = engine.project_personalized_improvement(parsed_samples, parsed_profile)
        else:
            projection = engine.project(parsed_samples, parsed_profile)

        result = projection.to_dict()
        result["scenario"] = scenario
        return json.dumps(result)

    @mcp.tool
    def neutral_point(
        metric_kind: str,
        current_value: float,
        profile: dict[str, Any] | None = None,
        search_min: float | None = None,
        search_max: float | None = None,
    ) -> str:
        """Find the metric value at which lifespan impact is zero.

        Args:
            metric_kind: Metric to solve for.
            current_value: Current metric value.
            profile: Optional {age_years, gender, height_cm, weight_kg}.
            search_min: Optional lower end of the search bracket.
            search_max: Optional upper end of the search bracket.
        """
        bounds = None
        if search_min is not None or search_max is not None:
            if search_min is None or search_max is None:
                raise ValueError("search_min and search_max must be given together")
            bounds = (search_min, search_max)
        result = engine.solve_for_neutral(
            MetricKind.parse(metric_kind), current_value, _parse_profile(profile), bounds
        )
        return json.dumps(result.to_dict())

    @mcp.tool
    def recommend_action(
        metric_kind: str,
        current_value: float,
        profile: dict[str, Any] | None = None,
        period: str = "day",
    ) -> str:
        """Suggest one realistic action and the lifespan minutes it would add.

        Args:
            metric_kind: Metric to improve.
            current_value: Current metric value.
            profile: Optional {age_years, gender, height_cm, weight_kg}.
            period: Period used to format the benefit: 'day', 'month' or 'year'.
        """
        period_type = _parse_period(period)
        rec = engine.benefit_of(MetricKind.parse(metric_kind), current_value, _parse_profile(profile))
        result = rec.to_dict()
        result["formatted_benefit"] = format_benefit(rec.incremental_minutes, period_type)
        result["period"] = period_type.value
        return json.dumps(result)
