"""Human-readable rendering of lifespan minutes. Presentation only."""

from __future__ import annotations

from lifespan.domains.longevity.domain_logic.metric_models import PeriodType

MINUTES_PER_HOUR = 60.0
MINUTES_PER_DAY = 1440.0
MINUTES_PER_WEEK = 10080.0
MINUTES_PER_YEAR = 525600.0


def format_duration(minutes: float) -> str:
    """Unsigned duration in the largest sensible unit, e.g. ``"1.5 h"``."""
    m = abs(minutes)
    if m >= MINUTES_PER_YEAR:
        years = m / MINUTES_PER_YEAR
        return f"{years:.1f} {'year' if years == 1 else 'years'}"
    if m >= MINUTES_PER_WEEK:
        return f"{m / MINUTES_PER_WEEK:.1f} weeks"
    if m >= MINUTES_PER_DAY:
        return f"{m / MINUTES_PER_DAY:.1f} days"
    if m >= MINUTES_PER_HOUR:
        return f"{m / MINUTES_PER_HOUR:.1f} h"
    if m >= 1:
        return f"{round(m)} min"
    return "0 min"


def format_impact(minutes: float) -> str:
    """Signed duration, e.g. ``"+12 min"`` or ``"-2.0 h"``."""
    text = format_duration(minutes)
    if text == "0 min":
        return text
    return f"{'+' if minutes > 0 else '-'}{text}"


def format_benefit(daily_minutes: float, period: PeriodType | str = PeriodType.DAY) -> str:
    """Render a daily benefit scaled to a reporting period.

    >>> format_benefit(12.4, "month")
    '+6.2 h'
    """
    period = PeriodType(period)
    return format_impact(daily_minutes * period.multiplier)
