"""Typed records for server payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(Enum):
    """WebSocket event names known to the dispatcher."""

    PING = "ping"
    POSTED = "posted"
    NEW_USER = "new_user"
    ADDED_TO_TEAM = "added_to_team"
    AUTHENTICATION_CHALLENGE = "authentication_challenge"
    CHANNEL_CONVERTED = "channel_converted"
    CHANNEL_CREATED = "channel_created"
    CHANNEL_DELETED = "channel_deleted"
    CHANNEL_MEMBER_UPDATED = "channel_member_updated"
    CHANNEL_UPDATED = "channel_updated"
    CHANNEL_VIEWED = "channel_viewed"
    CONFIG_CHANGED = "config_changed"
    DELETE_TEAM = "delete_team"
    EPHEMERAL_MESSAGE = "ephemeral_message"
    HELLO = "hello"
    TYPING = "typing"
    POST_EDIT = "post_edit"
    POST_DELETED = "post_deleted"
    PREFERENCE_CHANGED = "preference_changed"
    USER_ADDED = "user_added"
    USER_REMOVED = "user_removed"
    USER_ROLE_UPDATED = "user_role_updated"
    USER_UPDATED = "user_updated"
    STATUS_CHANGE = "status_change"
    WEBRTC = "webrtc"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str | None) -> EventKind:
        """Map a wire event name to its kind, OTHER when unknown."""
        if not name or name == cls.OTHER.value:
            return cls.OTHER
        try:
            return cls(name)
        except ValueError:
            return cls.OTHER


# Republished verbatim under their own event name.
INFORMATIONAL_EVENTS: frozenset[EventKind] = frozenset(
    {
        EventKind.ADDED_TO_TEAM,
        EventKind.AUTHENTICATION_CHALLENGE,
        EventKind.CHANNEL_CONVERTED,
        EventKind.CHANNEL_CREATED,
        EventKind.CHANNEL_DELETED,
        EventKind.CHANNEL_MEMBER_UPDATED,
        EventKind.CHANNEL_UPDATED,
        EventKind.CHANNEL_VIEWED,
        EventKind.CONFIG_CHANGED,
        EventKind.DELETE_TEAM,
        EventKind.EPHEMERAL_MESSAGE,
        EventKind.HELLO,
        EventKind.TYPING,
        EventKind.POST_EDIT,
        EventKind.POST_DELETED,
        EventKind.PREFERENCE_CHANGED,
        EventKind.USER_ADDED,
        EventKind.USER_REMOVED,
        EventKind.USER_ROLE_UPDATED,
        EventKind.USER_UPDATED,
        EventKind.STATUS_CHANGE,
        EventKind.WEBRTC,
    }
)


@dataclass(frozen=True)
class User:
    """User profile as returned by the server."""

    id: str
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    nickname: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> User:
        return cls(
            id=data["id"],
            username=data.get("username"),
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            nickname=data.get("nickname"),
            raw=dict(data),
        )


@dataclass(frozen=True)
class Message:
    """Inbound WebSocket frame."""

    event: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    broadcast: dict[str, Any] = field(default_factory=dict)
    seq: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, frame: dict[str, Any]) -> Message:
        data = frame.get("data")
        broadcast = frame.get("broadcast")
        return cls(
            event=frame.get("event"),
            data=data if isinstance(data, dict) else {},
            broadcast=broadcast if isinstance(broadcast, dict) else {},
            seq=frame.get("seq"),
            raw=dict(frame),
        )

    @property
    def kind(self) -> EventKind:
        return EventKind.from_name(self.event)

    @property
    def text(self) -> str | None:
        """Payload text, used by pong replies."""
        text = self.data.get("text")
        return text if isinstance(text, str) else None

    @property
    def post(self) -> dict[str, Any] | None:
        """Decoded post of a ``posted`` event.

        The server sends the post as a JSON-encoded string.
        """
        post = self.data.get("post")
        if isinstance(post, dict):
            return post
        if not isinstance(post, str):
            return None
        try:
            decoded = json.loads(post)
        except ValueError:
            return None
        return decoded if isinstance(decoded, dict) else None
