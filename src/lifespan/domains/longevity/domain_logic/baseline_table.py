"""Baseline life expectancy from age and gender (actuarial tables)."""

from __future__ import annotations

from lifespan.core.calibration.models import CalibrationError, CalibrationTable
from lifespan.domains.longevity.domain_logic.metric_models import Gender


def _remaining_from_table(age: float, table: dict[float, float]) -> float:
    ages = sorted(table)
    if age <= ages[0]:
        return table[ages[0]]
    if age >= ages[-1]:
        return table[ages[-1]]
    for lower, upper in zip(ages, ages[1:]):
        if lower <= age <= upper:
            fraction = (age - lower) / (upper - lower)
            return table[lower] + (table[upper] - table[lower]) * fraction
    return table[ages[-1]]  # pragma: no cover


def remaining_years(age_years: float, gender: Gender | None, calibration: CalibrationTable) -> float:
    """Expected remaining years at ``age_years``.

    Without a gender, the male and female curves are averaged.
    """
    tables = calibration.life_tables
    if gender is not None:
        try:
            return _remaining_from_table(age_years, tables[gender.value])
        except KeyError:
            raise CalibrationError(f"No baseline life table for gender {gender.value!r}") from None
    curves = [tables[g.value] for g in Gender if g.value in tables]
    if not curves:
        raise CalibrationError("Calibration has no baseline life tables")
    return sum(_remaining_from_table(age_years, t) for t in curves) / len(curves)


def baseline_years(age_years: float, gender: Gender | None, calibration: CalibrationTable) -> float:
    """Unadjusted total life expectancy: current age plus expected remaining years."""
    return age_years + remaining_years(age_years, gender, calibration)
