"""Pytest configuration and fixtures for mattermost_client tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from mattermost_client import MattermostClient, MattermostWsClient, MattermostWsMessage
from mattermost_client.config import ENV_LOG_LEVEL, ENV_TLS_VERIFY, ENV_USE_TLS

SERVER_URL = "test.foo.bar"
SOCKET_URL = f"wss://{SERVER_URL}/api/v4/websocket"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test with the default TLS settings."""
    for name in (ENV_USE_TLS, ENV_TLS_VERIFY, ENV_LOG_LEVEL):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
async def client(mock_session: MagicMock):
    """Client wired to the mock session, shut down after the test."""
    tested = MattermostClient(SERVER_URL, "dummy", session=mock_session)
    yield tested
    await tested.close()


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    text_data: str | None = None,
    headers: dict[str, str] | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Body to serialize and return from text()
        text_data: Raw body returned from text(), wins over json_data
        headers: Response headers

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.headers = headers or {}

    if text_data is None:
        text_data = json.dumps(json_data) if json_data is not None else ""
    response.text.return_value = text_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def create_mock_ws(messages: Iterable[MattermostWsMessage] = ()) -> AsyncMock:
    """Create a mock MattermostWsClient yielding the given messages."""
    ws = AsyncMock()
    ws.connect = AsyncMock()
    ws.close = AsyncMock()
    ws.send_json = AsyncMock()
    ws.decode_json = MattermostWsClient.decode_json
    ws.__aiter__.return_value = list(messages)
    return ws


def request_body(call: Any) -> Any:
    """Decode the JSON body of a recorded session.request call."""
    data = call.kwargs["data"]
    return json.loads(data) if data is not None else None


async def drain(client: MattermostClient) -> None:
    """Wait until every background task spawned by the client has finished."""
    while client._tasks:
        await asyncio.gather(*list(client._tasks), return_exceptions=True)
