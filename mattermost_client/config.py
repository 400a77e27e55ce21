"""Client options and environment-level settings."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field

ENV_USE_TLS = "MATTERMOST_USE_TLS"
ENV_TLS_VERIFY = "MATTERMOST_TLS_VERIFY"
ENV_LOG_LEVEL = "MATTERMOST_LOG_LEVEL"

DEFAULT_PING_INTERVAL = 60.0
DEFAULT_RECONNECT_DELAY = 1.0

_DISABLED_RE = re.compile(r"^(false|0|no|off)$", re.IGNORECASE)


def env_flag(name: str) -> bool:
    """Read a boolean toggle from the environment.

    ``false``, ``0``, ``no`` and ``off`` (any case) disable the toggle;
    anything else, including an unset variable, enables it.
    """
    value = os.environ.get(name, "").strip()
    return _DISABLED_RE.match(value) is None


def env_log_level() -> int | None:
    """Return the logging level named by MATTERMOST_LOG_LEVEL, if any."""
    value = os.environ.get(ENV_LOG_LEVEL, "").strip()
    if not value:
        return None
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else None


@dataclass(slots=True)
class ClientOptions:
    """Connection options for a Mattermost client.

    Args:
        wss_port: Port of the WebSocket endpoint when TLS is used
        http_port: Port of the REST endpoint (and of the WebSocket without TLS)
        ping_interval: Heartbeat interval (seconds)
        auto_reconnect: Reconnect when the socket closes
        http_proxy: Proxy URL applied to REST and WebSocket traffic
        use_tls: Use https/wss instead of http/ws
        tls_verify: Verify server certificates
        reconnect_delay: Delay added per reconnect attempt (seconds)
        reconnect_max_delay: Upper bound on the reconnect delay, None for unbounded
        request_timeout: Total timeout of a REST request (seconds)
        connect_timeout: WebSocket opening timeout (seconds)
    """

    wss_port: int | None = None
    http_port: int | None = None
    ping_interval: float = DEFAULT_PING_INTERVAL
    auto_reconnect: bool = True
    http_proxy: str | None = None
    use_tls: bool = field(default_factory=lambda: env_flag(ENV_USE_TLS))
    tls_verify: bool = field(default_factory=lambda: env_flag(ENV_TLS_VERIFY))
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    reconnect_max_delay: float | None = None
    request_timeout: float = 30.0
    connect_timeout: float = 15.0
