"""Transport layer for the Mattermost client.

This package contains all IO and network handling.

Components:
- http: HTTP client for REST API calls
- ws: WebSocket connection management
- ws_client: WebSocket message iteration
"""

from .http import MattermostHttpClient
from .ws import connect_websocket
from .ws_client import MattermostWsClient, MattermostWsMessage, MattermostWsMessageType

__all__ = [
    "MattermostHttpClient",
    "MattermostWsClient",
    "MattermostWsMessage",
    "MattermostWsMessageType",
    "connect_websocket",
]
