"""WebSocket client wrapper for the Mattermost real-time API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from ..errors import MattermostClientError, MattermostConnectionError
from .ws import connect_websocket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# Abnormal closure, reported when no close frame was received.
CLOSE_ABNORMAL = 1006


class MattermostWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class MattermostWsMessage:
    """Normalized WebSocket message payload.

    TEXT messages carry the raw frame text; CLOSED messages carry
    ``{"code": int, "reason": str}``; ERROR messages carry the exception text.
    """

    type: MattermostWsMessageType
    data: str | dict[str, Any] | None = None


class MattermostWsClient:
    """Wrapper around websockets library for Mattermost."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    async def connect(
        self,
        url: str,
        *,
        verify_tls: bool = True,
        proxy: str | None = None,
        timeout: float = 15.0,
    ) -> None:
        """Connect to the server websocket."""
        self._ws = await connect_websocket(
            url,
            verify_tls=verify_tls,
            proxy=proxy,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            await self._ws.close()

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Send a JSON payload to the websocket."""
        if self._ws is None:
            raise MattermostConnectionError("WebSocket is not connected")
        try:
            await self._ws.send(json.dumps(payload))
        except ConnectionClosed as err:
            raise MattermostConnectionError("WebSocket is closed") from err

    def __aiter__(self) -> AsyncIterator[MattermostWsMessage]:
        if self._ws is None:
            raise MattermostConnectionError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[MattermostWsMessage]:
        if self._ws is None:
            raise MattermostConnectionError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                if isinstance(msg, bytes):
                    continue
                yield MattermostWsMessage(MattermostWsMessageType.TEXT, msg)
        except ConnectionClosed as err:
            yield MattermostWsMessage(
                type=MattermostWsMessageType.CLOSED,
                data=self._close_info(err),
            )
        except Exception as err:
            yield MattermostWsMessage(type=MattermostWsMessageType.ERROR, data=str(err))
        else:
            yield MattermostWsMessage(
                type=MattermostWsMessageType.CLOSED,
                data=self._close_info(None),
            )

    def _close_info(self, err: ConnectionClosed | None) -> dict[str, Any]:
        """Extract the close code and reason received from the peer."""
        frame = err.rcvd if err is not None else None
        if frame is None and self._ws is not None:
            frame = getattr(self._ws, "close_rcvd", None)
        if frame is None:
            return {"code": CLOSE_ABNORMAL, "reason": ""}
        return {"code": frame.code, "reason": frame.reason}

    @staticmethod
    def decode_json(message: MattermostWsMessage) -> dict[str, Any]:
        """Decode a TEXT message payload into JSON."""
        if message.type is not MattermostWsMessageType.TEXT:
            raise MattermostClientError("Only TEXT messages can be decoded")
        if not isinstance(message.data, str):
            raise MattermostClientError("Message data is not a string")
        result = json.loads(message.data)
        if not isinstance(result, dict):
            raise MattermostClientError("Frame is not a JSON object")
        return result
