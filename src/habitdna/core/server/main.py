"""Run HabitDNA over Streamable HTTP: ``python -m habitdna.core.server.main``.

The server has no authentication of its own, so it only binds to loopback
addresses unless ``HABITDNA_ALLOW_INSECURE_BIND`` is set.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from habitdna.core.config.settings import Settings, get_settings
from habitdna.core.server.app import VERSION, create_app

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _log_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def endpoint_url(settings: Settings) -> str:
    """Address MCP clients should connect to."""
    host = settings.habitdna_host
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{settings.habitdna_port}{MCP_PATH}"


def describe_storage(settings: Settings) -> str:
    """One-line summary of where habits are kept, for the startup log."""
    if settings.storage_backend == "memory":
        return "in memory (lost on restart)"
    encryption = "encrypted" if settings.encryption_key else "unencrypted"
    return f"{settings.db_path} ({encryption})"


def run() -> None:
    """Start the HabitDNA MCP server."""
    settings = get_settings()
    logging.basicConfig(level=_log_level(settings.habitdna_log_level), format=LOG_FORMAT)

    if not settings.habitdna_allow_insecure_bind and not _is_loopback_host(settings.habitdna_host):
        raise RuntimeError(
            f"HabitDNA has no auth layer and will not listen on non-loopback host "
            f"{settings.habitdna_host!r}. Set HABITDNA_ALLOW_INSECURE_BIND=true to allow it."
        )

    mcp = create_app()
    logger.info("HabitDNA %s serving habits from %s", VERSION, describe_storage(settings))
    logger.info("MCP endpoint: %s", endpoint_url(settings))
    mcp.run(
        transport="streamable-http",
        host=settings.habitdna_host,
        port=settings.habitdna_port,
        path=MCP_PATH,
    )


if __name__ == "__main__":
    run()
