"""Run the lifespan impact engine as a local Streamable HTTP MCP server.

Usage: ``lifespan-server`` or ``python -m lifespan.core.server.main``.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from lifespan.core.config.settings import Settings, get_settings
from lifespan.core.server.app import create_app

logger = logging.getLogger(__name__)

_LOOPBACK_NAMES = frozenset({"localhost", "ip6-localhost"})


def _is_loopback_host(host: str) -> bool:
    if host.lower() in _LOOPBACK_NAMES:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        # Any other hostname may resolve to a public interface.
        return False


def _check_bind(settings: Settings) -> None:
    """Profiles and readings are personal health data; keep them on this machine."""
    if _is_loopback_host(settings.lifespan_host) or settings.lifespan_allow_insecure_bind:
        return
    raise RuntimeError(
        f"Refusing to serve lifespan projections on non-loopback host "
        f"{settings.lifespan_host!r}: the tools have no authentication. "
        "Bind to 127.0.0.1, or set LIFESPAN_ALLOW_INSECURE_BIND=true behind your own auth proxy."
    )


def run() -> None:
    settings = get_settings()
    level = logging.getLevelName(settings.lifespan_log_level.upper())
    logging.basicConfig(level=level if isinstance(level, int) else logging.INFO)

    _check_bind(settings)
    if not _is_loopback_host(settings.lifespan_host):
        logger.warning("Serving on %s without authentication", settings.lifespan_host)

    server = create_app()
    logger.info(
        "Lifespan impact engine listening on http://%s:%d",
        settings.lifespan_host,
        settings.lifespan_port,
    )
    server.run(
        transport="streamable-http",
        host=settings.lifespan_host,
        port=settings.lifespan_port,
    )


if __name__ == "__main__":
    run()
