"""Client error types for Mattermost server interactions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class MattermostClientError(Exception):
    """Base error for Mattermost client failures."""


class MattermostTimeout(MattermostClientError):
    """Timeout while communicating with the server."""


class MattermostConnectionError(MattermostClientError):
    """Network connection to the server failed."""

    def __init__(self, message: str, *, errno: int | str | None = None) -> None:
        super().__init__(message)
        self.errno = errno


class MattermostHandshakeError(MattermostClientError):
    """WebSocket handshake failed."""


class MattermostResponseError(MattermostClientError):
    """HTTP response error from the server."""

    def __init__(
        self,
        status: int,
        message: str,
        *,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
        self.headers = headers if headers is not None else {}
