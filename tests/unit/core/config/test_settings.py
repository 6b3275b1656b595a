"""Unit tests for environment-driven settings."""

from __future__ import annotations

import pytest

from lifespan.core.config.settings import Settings, get_settings


def test_defaults_bind_loopback(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("LIFESPAN_HOST", raising=False)
    settings = Settings(_env_file=None)
    assert settings.lifespan_host == "127.0.0.1"
    assert settings.lifespan_allow_insecure_bind is False
    assert settings.calibration_path == ""


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LIFESPAN_PORT", "9100")
    monkeypatch.setenv("LIFESPAN_LOG_LEVEL", "debug")
    monkeypatch.setenv("CALIBRATION_PATH", "/tmp/custom.yaml")
    settings = get_settings()
    assert settings.lifespan_port == 9100
    assert settings.lifespan_log_level == "debug"
    assert settings.calibration_path == "/tmp/custom.yaml"


def test_calibration_directory_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CALIBRATION_DIR", "/srv/calibration")
    monkeypatch.setenv("CALIBRATION_VERSION", "1.2")
    settings = get_settings()
    assert settings.calibration_dir == "/srv/calibration"
    assert settings.calibration_version == "1.2"
