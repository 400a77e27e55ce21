"""WebSocket helpers for the Mattermost real-time API."""

from __future__ import annotations

import asyncio
import ssl
from typing import Any

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from ..errors import (
    MattermostConnectionError,
    MattermostHandshakeError,
    MattermostTimeout,
)


def build_ssl_context(url: str, *, verify: bool) -> ssl.SSLContext | None:
    """Return an SSL context for wss URLs that skip verification.

    None leaves the library default (verified TLS for wss, plain for ws).
    """
    if verify or not url.startswith("wss://"):
        return None
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


async def connect_websocket(
    url: str,
    *,
    verify_tls: bool = True,
    proxy: str | None = None,
    timeout: float = 15.0,
) -> ClientConnection:
    """Connect to a WebSocket endpoint.

    Protocol-level pings are disabled: liveness is tracked by the client's
    own heartbeat frames.

    Args:
        url: Full ws:// or wss:// URL
        verify_tls: Verify the server certificate
        proxy: Optional proxy URL
        timeout: Connection timeout
    """
    kwargs: dict[str, Any] = {
        "ping_interval": None,
        "close_timeout": 5,
        "max_size": None,
    }
    context = build_ssl_context(url, verify=verify_tls)
    if context is not None:
        kwargs["ssl"] = context
    if proxy:
        kwargs["proxy"] = proxy
    try:
        return await asyncio.wait_for(websockets.connect(url, **kwargs), timeout=timeout)
    except TimeoutError as err:
        raise MattermostTimeout("WebSocket connection timed out") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise MattermostHandshakeError("WebSocket handshake failed") from err
    except (OSError, WebSocketException) as err:
        raise MattermostConnectionError(
            "WebSocket connection failed", errno=getattr(err, "errno", None)
        ) from err
