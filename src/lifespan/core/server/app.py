"""Lifespan Impact MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from lifespan.core.calibration.models import CalibrationTable
from lifespan.core.calibration.registry import CalibrationRegistry
from lifespan.core.config.settings import get_settings
from lifespan.domains.longevity.domain_logic.engine import (
    LongevityEngine,
    load_calibration_registry,
    load_default_calibration,
    select_calibration,
)
from lifespan.domains.longevity.resources.calibration import (
    register_longevity_calibration_resources,
)
from lifespan.domains.longevity.tools.longevity_tools import register_longevity_tools

logger = logging.getLogger(__name__)


def create_app(*, calibration_override: CalibrationTable | None = None) -> FastMCP:
    """Create and configure the Lifespan Impact MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads and validates the calibration tables, then picks the version to serve
    3. Binds the longevity engine to that table
    4. Registers all tools and resources
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Lifespan Impact",
        instructions=(
            "Lifespan impact engine. Converts health metric readings into "
            "lifespan minutes per day, aggregates them into a battery level, "
            "projects adjusted life expectancy and quantifies the benefit of "
            "realistic habit changes. Callers supply samples in tool arguments."
        ),
    )

    # --- Calibration ---
    if calibration_override is not None or settings.calibration_path:
        calibration = calibration_override or load_default_calibration(settings.calibration_path)
        registry = CalibrationRegistry()
        registry.register(calibration)
    else:
        registry = load_calibration_registry(settings.calibration_dir or None)
        calibration = select_calibration(registry, settings.calibration_version or None)

    engine = LongevityEngine(calibration)
    logger.info(
        "Longevity engine ready: %s v%s (%d metrics)",
        calibration.id,
        calibration.version,
        len(calibration.metrics),
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Lifespan Impact",
            "version": "0.1.0",
            "calibration_id": calibration.id,
            "calibration_version": calibration.version,
            "metrics_calibrated": len(calibration.metrics),
        }

    register_longevity_tools(server, engine)

    # --- Register resources ---
    register_longevity_calibration_resources(server, registry)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
