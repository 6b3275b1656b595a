"""Calibration YAML validator: ensures calibration tables are well-formed."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from lifespan.core.calibration.loader import load_calibration_file
from lifespan.core.calibration.models import CalibrationTable, MetricCalibration

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["id", "version"]
KNOWN_SHAPES = {"plateau", "u_shaped", "ordinal"}
KNOWN_OUTPUTS = {"minutes", "relative_risk"}
KNOWN_AGGREGATIONS = {"cumulative", "state", "ordinal"}
REQUIRED_GENDERS = ("male", "female")


def validate_calibration_file(
    path: Path, *, project_root: Path | None = None, kinds: list[str] | None = None
) -> tuple[CalibrationTable | None, list[str]]:
    """Validate a single calibration YAML file.

    Returns: (table_or_none, errors)
    """
    display_path: str
    if project_root:
        try:
            display_path = str(path.relative_to(project_root))
        except ValueError:
            display_path = str(path)
    else:
        display_path = str(path)

    try:
        table = load_calibration_file(path)
    except Exception as exc:
        return None, [f"{display_path}: Failed to load: {exc}"]

    errors = [f"{display_path}: {err}" for err in validate_calibration(table, kinds)]

    name = path.name
    if not (name == f"{table.id}.yaml" or name.startswith(f"{table.id}.")):
        errors.append(
            f"{display_path}: Filename '{name}' should match calibration id '{table.id}' "
            f"(expected '{table.id}.*.yaml')"
        )
    return table, errors


def validate_calibration(table: CalibrationTable, kinds: list[str] | None = None) -> list[str]:
    """Check a parsed table; returns a list of problems (empty when valid).

    ``kinds`` lists metric kinds that must have an entry.
    """
    errors: list[str] = []

    for field_name in REQUIRED_FIELDS:
        if not getattr(table, field_name, None):
            errors.append(f"Missing or empty required field '{field_name}'")

    if table.version and not all(c.isdigit() or c == "." for c in table.version):
        errors.append(f"Version '{table.version}' doesn't look like a version number")

    for gender in REQUIRED_GENDERS:
        curve = table.life_tables.get(gender)
        if not curve:
            errors.append(f"Baseline life table for '{gender}' is missing")
            continue
        ages = sorted(curve)
        remaining = [curve[a] for a in ages]
        if any(b > a for a, b in zip(remaining, remaining[1:])):
            errors.append(f"Baseline life table for '{gender}' must not increase with age")
        if any(r <= 0 for r in remaining):
            errors.append(f"Baseline life table for '{gender}' has non-positive remaining years")

    for kind in kinds or []:
        if kind not in table.metrics:
            errors.append(f"No calibration entry for metric '{kind}'")

    for kind, metric in table.metrics.items():
        errors.extend(f"Metric '{kind}': {err}" for err in _validate_metric(metric))

    return errors


def _validate_metric(metric: MetricCalibration) -> list[str]:
    errors: list[str] = []
    curve = metric.curve
    lo, hi = metric.bounds

    if lo >= hi:
        errors.append(f"bounds {list(metric.bounds)} are not increasing")
    if metric.aggregation not in KNOWN_AGGREGATIONS:
        errors.append(f"unknown aggregation '{metric.aggregation}'")
    if curve.shape not in KNOWN_SHAPES:
        errors.append(f"unknown curve shape '{curve.shape}'")
        return errors
    if curve.output not in KNOWN_OUTPUTS:
        errors.append(f"unknown curve output '{curve.output}'")
    if curve.output == "relative_risk" and curve.impact_scaling <= 0:
        errors.append("impact_scaling must be positive")
    if not lo <= metric.optimal_value <= hi and metric.value_transform is None:
        errors.append(f"optimal_value {metric.optimal_value} is outside bounds")
    if not metric.actions:
        errors.append("no action tiers defined")
    for tier in metric.actions:
        if tier.max_delta <= 0:
            errors.append(f"action '{tier.description}' has non-positive max_delta")

    # Relative risk falls as health improves; minutes rise.
    sign = -1.0 if curve.output == "relative_risk" else 1.0
    try:
        if curve.shape == "plateau":
            errors.extend(_check_plateau(curve.params, sign))
        elif curve.shape == "u_shaped":
            errors.extend(_check_u_shaped(curve.params, sign))
        else:
            errors.extend(_check_rising(curve.params.get("anchors") or [], sign, "anchors"))
    except (KeyError, TypeError, ValueError) as exc:
        errors.append(f"malformed curve parameters: {exc}")
    return errors


def _check_plateau(params: dict, sign: float) -> list[str]:
    errors = []
    floor = float(params["floor"])
    low = float(params["low_threshold"])
    plateau = float(params["plateau_threshold"])
    if not floor < low < plateau:
        errors.append("plateau thresholds must satisfy floor < low_threshold < plateau_threshold")
    responses = [
        float(params["floor_response"]),
        float(params["low_response"]),
        float(params["plateau_response"]),
    ]
    if any(sign * (b - a) < 0 for a, b in zip(responses, responses[1:])):
        errors.append("plateau responses must not worsen as the value rises")
    if params.get("rise", "log") not in ("log", "linear"):
        errors.append(f"unknown rise '{params.get('rise')}'")
    return errors


def _check_u_shaped(params: dict, sign: float) -> list[str]:
    errors = []
    optimum = float(params["optimum"])
    best = float(params["optimum_response"])
    for side, direction in (("below", -1.0), ("above", 1.0)):
        anchors = params.get(side) or []
        previous_x, previous_y = optimum, best
        for x, y in anchors:
            if direction * (float(x) - previous_x) <= 0:
                errors.append(f"{side} anchors must move away from the optimum")
                break
            if sign * (float(y) - previous_y) > 0:
                errors.append(f"{side} anchors must not improve away from the optimum")
                break
            previous_x, previous_y = float(x), float(y)
    band = params.get("band")
    if band is not None and not float(band[0]) <= optimum <= float(band[1]):
        errors.append("optimum must lie inside the healthy band")
    return errors


def _check_rising(anchors: list, sign: float, label: str) -> list[str]:
    if len(anchors) < 2:
        return [f"{label} needs at least two points"]
    xs = [float(x) for x, _ in anchors]
    ys = [float(y) for _, y in anchors]
    errors = []
    if any(b <= a for a, b in zip(xs, xs[1:])):
        errors.append(f"{label} must be strictly increasing in value")
    if any(sign * (b - a) < 0 for a, b in zip(ys, ys[1:])):
        errors.append(f"{label} responses must not worsen as the score rises")
    if any(not math.isfinite(y) for y in ys):
        errors.append(f"{label} responses must be finite")
    return errors


def validate_calibration_directory(
    directory: str | Path, *, project_root: Path | None = None, kinds: list[str] | None = None
) -> tuple[int, list[str]]:
    """Validate all calibration YAML files in a directory (recursively).

    Returns: (table_count, errors)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0, [f"Calibration directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.rglob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return 0, [f"No calibration YAML files found in {directory}"]

    errors: list[str] = []
    seen: dict[tuple[str, str], Path] = {}
    loaded = 0

    for path in yaml_files:
        table, file_errors = validate_calibration_file(path, project_root=project_root, kinds=kinds)
        if file_errors:
            errors.extend(file_errors)
            continue

        assert table is not None  # for type checkers
        loaded += 1

        key = (table.id, table.version)
        if key in seen:
            errors.append(
                f"{path}: Duplicate calibration '{table.id}' v{table.version} "
                f"already defined in {seen[key]}"
            )
        else:
            seen[key] = path

    return loaded, errors
