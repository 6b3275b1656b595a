"""Shared test fixtures for lifespan impact tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from lifespan.core.calibration.models import CalibrationTable  # noqa: E402
from lifespan.domains.longevity.domain_logic.engine import (  # noqa: E402
    LongevityEngine,
    load_default_calibration,
)
from lifespan.domains.longevity.domain_logic.metric_models import (  # noqa: E402
    Gender,
    MetricKind,
    MetricSample,
    Profile,
    Provenance,
)

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CALIBRATION_PATH", "")
    monkeypatch.setenv("CALIBRATION_DIR", "")
    monkeypatch.setenv("CALIBRATION_VERSION", "")
    monkeypatch.setenv("LIFESPAN_HOST", "127.0.0.1")
    monkeypatch.setenv("LIFESPAN_ALLOW_INSECURE_BIND", "false")


# ---------------------------------------------------------------------------
# Calibration and engine
# ---------------------------------------------------------------------------

NOON = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def calibration() -> CalibrationTable:
    """The packaged calibration table."""
    return load_default_calibration()


@pytest.fixture
def engine(calibration: CalibrationTable) -> LongevityEngine:
    return LongevityEngine(calibration)


@pytest.fixture
def male_40() -> Profile:
    return Profile(age_years=40, gender=Gender.MALE, height_cm=178, weight_kg=80)


@pytest.fixture
def make_sample():
    """Factory for MetricSample with sensible defaults."""

    def _make(
        kind: MetricKind | str,
        value: float,
        observed_at: datetime = NOON,
        provenance: Provenance = Provenance.DEVICE_MEASURED,
    ) -> MetricSample:
        return MetricSample(
            metric_kind=MetricKind.parse(kind),
            value=value,
            observed_at=observed_at,
            provenance=provenance,
        )

    return _make
