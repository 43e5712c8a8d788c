"""Development server launcher.

Binds the application to ``PORT`` (default 3000). When that port is taken the
next ports are tried, up to :data:`MAX_PORT_TRIES` extra attempts, before the
process gives up.
"""

from __future__ import annotations

import errno
import logging
import os
import socket
from dataclasses import dataclass
from typing import Callable, Optional

from flask import Flask


logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
MAX_PORT_TRIES = 10
MAX_PORT = 65535


class PortUnavailableError(RuntimeError):
    """Raised when no port in the retry window could be bound."""


@dataclass
class ServerSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


def settings_from_env() -> ServerSettings:
    """Read ``HOST``, ``PORT`` and ``LOG_LEVEL`` from the environment."""

    raw_port = os.environ.get("PORT", "")
    try:
        port = int(raw_port) if raw_port else DEFAULT_PORT
    except ValueError:
        logger.warning("Ignoring invalid PORT value %r.", raw_port)
        port = DEFAULT_PORT
    if not 0 < port <= MAX_PORT:
        port = DEFAULT_PORT

    log_level = (os.environ.get("LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        log_level = "INFO"

    return ServerSettings(
        host=os.environ.get("HOST") or DEFAULT_HOST,
        port=port,
        log_level=log_level,
    )


def port_is_free(host: str, port: int) -> bool:
    """Return ``False`` when ``port`` is taken on ``host``.

    Any other bind problem (unknown host, address not available, port out
    of range) raises :class:`PortUnavailableError`.
    """

    if not 0 < port <= MAX_PORT:
        raise PortUnavailableError(f"Port {port} is outside 1-{MAX_PORT}.")
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
    except socket.gaierror as exc:
        raise PortUnavailableError(f"Cannot resolve bind address {host!r}: {exc}") from exc

    family, socktype, proto, _, address = infos[0]
    with socket.socket(family, socktype, proto) as probe:
        # Same option the Werkzeug server sets, so TIME_WAIT sockets don't count as taken.
        probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            probe.bind(address)
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                return False
            raise PortUnavailableError(f"Cannot bind {host}:{port}: {exc}") from exc
    return True


def find_available_port(
    host: str,
    base_port: int,
    max_tries: int = MAX_PORT_TRIES,
    is_free: Optional[Callable[[str, int], bool]] = None,
) -> int:
    """Return the first bindable port starting at ``base_port``."""

    check = is_free or port_is_free
    port = base_port
    for attempt in range(max_tries + 1):
        if port > MAX_PORT:
            break
        if check(host, port):
            return port
        logger.warning("Port %d is in use.", port)
        if attempt < max_tries and port < MAX_PORT:
            logger.info("Trying port %d (%d/%d)...", port + 1, attempt + 1, max_tries)
        port += 1

    raise PortUnavailableError(
        f"Unable to bind after {max_tries} attempts. Please free port {base_port} or set "
        f"PORT to a different port (e.g. PORT=4000 python main.py)."
    )


def serve(app: Flask, settings: Optional[ServerSettings] = None) -> None:
    settings = settings or settings_from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        port = find_available_port(settings.host, settings.port)
    except PortUnavailableError as exc:
        logger.critical("%s", exc)
        raise SystemExit(1) from exc

    logger.info("Static server + API running at http://%s:%d/", settings.host, port)
    app.run(host=settings.host, port=port, threaded=True, use_reloader=False)


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "MAX_PORT",
    "MAX_PORT_TRIES",
    "PortUnavailableError",
    "ServerSettings",
    "find_available_port",
    "port_is_free",
    "serve",
    "settings_from_env",
]
