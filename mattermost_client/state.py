"""Mutable session state owned by a client."""

from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_PING_INTERVAL


@dataclass(slots=True)
class SessionState:
    """Credentials, auth token and connection flags of one client.

    Only the owning client's handlers mutate this object, all of them on
    the event loop thread.
    """

    host: str
    group: str
    token: str | None = None
    authenticated: bool = False
    connected: bool = False
    personal_access_token: bool = False
    conn_attempts: int = 0
    reconnecting: bool = False
    connecting: bool = False
    ping_interval: float = DEFAULT_PING_INTERVAL
    auto_reconnect: bool = True

    # Remembered for the reconnect resumption
    login_id: str | None = None
    password: str | None = None
    mfa_token: str | None = None
