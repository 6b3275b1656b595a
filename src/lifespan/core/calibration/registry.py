"""Calibration registry: in-memory index of loaded calibration tables."""

from __future__ import annotations

import logging

from lifespan.core.calibration.models import CalibrationTable

logger = logging.getLogger(__name__)


def _version_key(version: str) -> tuple[int, ...]:
    parts = []
    for piece in version.split("."):
        parts.append(int(piece) if piece.isdigit() else 0)
    return tuple(parts)


class CalibrationRegistry:
    """In-memory registry of calibration tables, keyed by id and version."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, CalibrationTable]] = {}

    def register(self, table: CalibrationTable) -> None:
        """Add a table; an id/version pair may only be registered once."""
        versions = self._tables.setdefault(table.id, {})
        if table.version in versions:
            raise ValueError(
                f"Duplicate calibration registered: {table.id!r} v{table.version}"
            )
        versions[table.version] = table

    def get(self, table_id: str, version: str | None = None) -> CalibrationTable | None:
        """Look up a table; without a version, the highest version wins."""
        versions = self._tables.get(table_id)
        if not versions:
            return None
        if version is not None:
            return versions.get(version)
        latest = max(versions, key=_version_key)
        return versions[latest]

    def versions(self, table_id: str) -> list[str]:
        return sorted(self._tables.get(table_id, {}), key=_version_key)

    def all(self) -> list[CalibrationTable]:
        """Return every registered table."""
        return [t for versions in self._tables.values() for t in versions.values()]
