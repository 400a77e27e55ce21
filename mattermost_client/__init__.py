"""Async client for the Mattermost REST and real-time WebSocket APIs."""

__version__ = "0.1.0"

from .client import MattermostClient
from .composer import MESSAGE_MAX_RUNES, chunk_message
from .config import ClientOptions, env_flag
from .errors import (
    MattermostClientError,
    MattermostConnectionError,
    MattermostHandshakeError,
    MattermostResponseError,
    MattermostTimeout,
)
from .models import EventKind, Message, User
from .state import SessionState
from .transport import (
    MattermostHttpClient,
    MattermostWsClient,
    MattermostWsMessage,
    MattermostWsMessageType,
    connect_websocket,
)

__all__ = [
    "MESSAGE_MAX_RUNES",
    "ClientOptions",
    "EventKind",
    "MattermostClient",
    "MattermostClientError",
    "MattermostConnectionError",
    "MattermostHandshakeError",
    "MattermostHttpClient",
    "MattermostResponseError",
    "MattermostTimeout",
    "MattermostWsClient",
    "MattermostWsMessage",
    "MattermostWsMessageType",
    "Message",
    "SessionState",
    "User",
    "__version__",
    "chunk_message",
    "connect_websocket",
    "env_flag",
]
