"""MCP Resources for calibration discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from lifespan.core.calibration.registry import CalibrationRegistry


def register_longevity_calibration_resources(mcp: FastMCP, registry: CalibrationRegistry) -> None:
    """Register calibration discovery resources on the MCP server."""

    @mcp.resource("calibration://longevity/table")
    def longevity_calibration_resource() -> str:
        """Describe the loaded calibration tables and their metrics."""
        tables = registry.all()
        return json.dumps(
            {
                "table_count": len(tables),
                "tables": [t.summary() for t in tables],
            },
            indent=2,
        )
