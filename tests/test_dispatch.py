"""Tests for inbound frame dispatch and subscriber notifications."""

from __future__ import annotations

import json
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mattermost_client import MattermostClient, Message
from mattermost_client.models import INFORMATIONAL_EVENTS

from .conftest import drain


@pytest.mark.asyncio
@pytest.mark.parametrize("event", sorted(kind.value for kind in INFORMATIONAL_EVENTS))
async def test_informational_events_are_republished(client: MattermostClient, event: str):
    callback = MagicMock()
    on_message = MagicMock()
    client.on(event, callback)
    client.on("message", on_message)
    frame = {"event": event, "data": {"user_id": "u1"}, "broadcast": {}, "seq": 4}

    client.on_message(frame)

    callback.assert_called_once_with(frame)
    on_message.assert_not_called()


@pytest.mark.asyncio
async def test_raw_message_always_emitted(client: MattermostClient):
    raw = MagicMock()
    client.on("raw_message", raw)
    frame = {"event": "custom_plugin_event", "data": {}}

    client.on_message(frame)

    raw.assert_called_once_with(frame)


@pytest.mark.asyncio
async def test_ping_event_refreshes_liveness(client: MattermostClient):
    ping = MagicMock()
    client.on("ping", ping)
    client._last_pong = 0.0

    client.on_message({"event": "ping", "data": {}})

    ping.assert_called_once()
    assert client._last_pong > time.time() - 5


@pytest.mark.asyncio
async def test_pong_reply_refreshes_liveness(client: MattermostClient):
    ping = MagicMock()
    client.on("ping", ping)
    client._last_pong = 0.0
    frame = {"status": "OK", "seq_reply": 9, "data": {"text": "pong", "version": "9.0"}}

    client.on_message(frame)

    ping.assert_called_once_with(frame)
    assert client._last_pong > 0.0


@pytest.mark.asyncio
async def test_posted_becomes_message(client: MattermostClient):
    on_message = MagicMock()
    client.on("message", on_message)
    post = {"id": "p1", "message": "Hello there", "user_id": "obiwan"}

    client.on_message(
        {
            "event": "posted",
            "data": {"post": json.dumps(post), "sender_name": "@ben"},
            "broadcast": {"channel_id": "c1"},
            "seq": 3,
        }
    )

    on_message.assert_called_once()
    message = on_message.call_args.args[0]
    assert isinstance(message, Message)
    assert message.post == post
    assert message.broadcast == {"channel_id": "c1"}
    assert message.seq == 3


@pytest.mark.asyncio
async def test_new_user_loads_profile(client: MattermostClient):
    new_user = MagicMock()
    client.on("new_user", new_user)
    frame = {"event": "new_user", "data": {"user_id": "u42"}}

    with patch.object(client, "load_user", AsyncMock()) as load_user:
        client.on_message(frame)
        await drain(client)

    load_user.assert_awaited_once_with("u42")
    new_user.assert_called_once_with(frame)


@pytest.mark.asyncio
async def test_unknown_event_is_dropped(client: MattermostClient):
    callback = MagicMock()
    for name in ("message", "ping", "new_user", "custom_plugin_event", "other"):
        client.on(name, callback)

    client.on_message({"event": "custom_plugin_event", "data": {}})

    callback.assert_not_called()


class TestSubscribers:
    """Tests for on(), off() and callback isolation."""

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_block_others(self, client: MattermostClient):
        broken = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        client.on("typing", broken)
        client.on("typing", healthy)

        client.on_message({"event": "typing", "data": {}})

        broken.assert_called_once()
        healthy.assert_called_once()

    @pytest.mark.asyncio
    async def test_coroutine_subscriber_is_scheduled(self, client: MattermostClient):
        received = []

        async def handler(message):
            received.append(message.post["id"])

        client.on("message", handler)
        client.on_message(
            {"event": "posted", "data": {"post": json.dumps({"id": "p7"})}}
        )
        await drain(client)

        assert received == ["p7"]

    @pytest.mark.asyncio
    async def test_off_unregisters(self, client: MattermostClient):
        callback = MagicMock()
        client.on("hello", callback)
        client.off("hello", callback)
        client.off("hello", callback)

        client.on_message({"event": "hello", "data": {}})

        callback.assert_not_called()
