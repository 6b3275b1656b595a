"""Calibration loader: reads versioned YAML calibration tables from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from lifespan.core.calibration.models import (
    ActionTier,
    CalibrationConstants,
    CalibrationError,
    CalibrationTable,
    CurveSpec,
    MetricCalibration,
    ProfileDefaults,
)
from lifespan.core.calibration.registry import CalibrationRegistry

logger = logging.getLogger(__name__)

# Keys of a curve block that are not shape parameters
_CURVE_META_KEYS = {"shape", "output", "impact_scaling"}


def load_calibration_directory(directory: str | Path, registry: CalibrationRegistry) -> int:
    """Load all YAML calibration tables from a directory (recursively).

    Returns the number of tables loaded.
    Skips files starting with underscore.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Calibration directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            table = load_calibration_file(path)
            registry.register(table)
            count += 1
            logger.info("Loaded calibration: %s (v%s)", table.id, table.version)
        except Exception:
            logger.exception("Failed to load calibration from %s", path)
    return count


def load_calibration_file(path: str | Path) -> CalibrationTable:
    """Parse a YAML file into a CalibrationTable."""
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise CalibrationError(f"Calibration file {path} does not contain a mapping")
    return parse_calibration(data)


def parse_calibration(data: dict[str, Any]) -> CalibrationTable:
    """Build a CalibrationTable from an already-parsed YAML mapping."""
    try:
        constants_data = data.get("constants", {}) or {}
        defaults_data = data.get("profile_defaults", {}) or {}

        constants = CalibrationConstants(
            **{k: v for k, v in constants_data.items() if k in CalibrationConstants.__dataclass_fields__}
        )
        profile_defaults = ProfileDefaults(
            age_years=float(defaults_data.get("age_years", 30)),
            reference_height_cm={
                str(k): float(v) for k, v in (defaults_data.get("reference_height_cm") or {}).items()
            },
        )
        life_tables = {
            str(gender): {float(age): float(years) for age, years in table.items()}
            for gender, table in (data.get("baseline_life_tables") or {}).items()
        }
        metrics = {
            str(kind): _parse_metric(str(kind), entry)
            for kind, entry in (data.get("metrics") or {}).items()
        }

        return CalibrationTable(
            id=data["id"],
            version=str(data["version"]),
            description=str(data.get("description", "")).strip(),
            constants=constants,
            profile_defaults=profile_defaults,
            life_tables=life_tables,
            metrics=metrics,
        )
    except CalibrationError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise CalibrationError(f"Malformed calibration table: {exc}") from exc


def _parse_metric(kind: str, entry: dict[str, Any]) -> MetricCalibration:
    curve_data = entry.get("curve") or {}
    bounds = entry.get("bounds") or []
    if len(bounds) != 2:
        raise CalibrationError(f"Metric {kind!r}: bounds must be [min, max]")

    fallback = entry.get("fallback_value")
    return MetricCalibration(
        kind=kind,
        display_name=entry.get("display_name", kind.replace("_", " ").title()),
        unit=entry.get("unit", ""),
        aggregation=entry.get("aggregation", "state"),
        bounds=(float(bounds[0]), float(bounds[1])),
        optimal_value=float(entry["optimal_value"]),
        curve=CurveSpec(
            shape=curve_data.get("shape", ""),
            output=curve_data.get("output", "minutes"),
            impact_scaling=float(curve_data.get("impact_scaling", 1.0)),
            params={k: v for k, v in curve_data.items() if k not in _CURVE_META_KEYS},
        ),
        fallback_value=None if fallback is None else float(fallback),
        value_transform=entry.get("value_transform"),
        study_reference=entry.get("study_reference"),
        actions=tuple(
            ActionTier(
                max_delta=float(a["max_delta"]),
                description=a.get("description", "").strip(),
                up_to=None if a.get("up_to") is None else float(a["up_to"]),
                direction=a.get("direction"),
            )
            for a in entry.get("actions", [])
        ),
        improve_further=entry.get("improve_further", "").strip(),
    )
