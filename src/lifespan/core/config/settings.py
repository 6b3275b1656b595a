"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Lifespan impact server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    lifespan_host: str = "127.0.0.1"
    lifespan_port: int = 8001
    lifespan_log_level: str = "info"
    # Non-loopback binds are refused unless this is set true.
    lifespan_allow_insecure_bind: bool = False

    # Calibration
    # A single table file; when set, calibration_dir is ignored.
    calibration_path: str = ""
    # Directory of versioned tables; empty means the packaged directory.
    calibration_dir: str = ""
    # Version to serve from calibration_dir; empty means the latest.
    calibration_version: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
