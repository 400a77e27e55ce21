"""High-level client for the Mattermost REST and WebSocket APIs.

This module provides the client an embedding application talks to. It handles:
- Login by credentials or personal access token
- Bootstrap of profile, preferences, teams, users and channels
- WebSocket connection state machine and authentication challenge
- Heartbeat liveness detection and reconnect with linear backoff
- Event dispatch to subscribers
- Posting, editing, reacting and uploading
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Coroutine, Mapping
from typing import Any

import aiohttp

from .composer import chunk_message
from .config import ClientOptions, env_log_level
from .errors import (
    MattermostClientError,
    MattermostConnectionError,
    MattermostResponseError,
    MattermostTimeout,
)
from .models import INFORMATIONAL_EVENTS, EventKind, Message, User
from .protocol import (
    PAGE_SIZE,
    USERS_ROUTE,
    build_auth_challenge,
    build_ping,
    build_socket_url,
    channel_route,
    direct_channel_names,
    team_route,
    users_page_route,
)
from .state import SessionState
from .transport.http import MattermostHttpClient
from .transport.ws_client import (
    CLOSE_ABNORMAL,
    MattermostWsClient,
    MattermostWsMessageType,
)

_LOGGER = logging.getLogger(__name__)

ApiCallback = Callable[[Any, Mapping[str, str], dict[str, Any]], Any]


class MattermostClient:
    """Client for one user on one Mattermost server.

    Usage:
        client = MattermostClient("chat.example.com", "my-team")
        client.on("message", my_message_handler)
        client.on("connected", my_connected_handler)
        await client.login("user@example.com", "password")
        ...
        await client.post_message("hello", channel_id)
        await client.close()

    Notifications (``client.on(name, callback)``):
        logged_in, me_loaded, preferences_loaded, teams_loaded,
        profiles_loaded, channels_loaded, connected, close, error,
        auth_failed, raw_message, ping, message, new_user and every
        informational event name (typing, channel_viewed, ...).
    """

    def __init__(
        self,
        host: str,
        group: str,
        options: ClientOptions | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize client.

        Args:
            host: Server hostname
            group: Name of the team to work in (matched case-insensitively)
            options: Connection options
            session: Shared aiohttp session; one is created (and owned) when omitted
        """
        self.options = options or ClientOptions()
        self.state = SessionState(
            host=host,
            group=group,
            ping_interval=self.options.ping_interval,
            auto_reconnect=self.options.auto_reconnect,
        )

        # Discovered context
        self.socket_url: str | None = None
        self.identity: User | None = None
        self.me: dict[str, Any] | None = None
        self.preferences: Any = None
        self.teams: list[dict[str, Any]] = []
        self.team_id: str | None = None
        self.users: dict[str, dict[str, Any]] = {}
        self.channels: dict[str, dict[str, Any]] = {}

        # Transport
        self._session = session
        self._owns_session = session is None
        self._http: MattermostHttpClient | None = None
        self._ws: MattermostWsClient | None = None

        # Tasks
        self._listen_task: asyncio.Task[None] | None = None
        self._ping_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

        # Keepalive and outbound frame tracking
        self._last_pong: float | None = None
        self._message_id = 0
        self._pending: dict[int, dict[str, Any]] = {}

        # Subscribers
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

        level = env_log_level()
        if level is not None:
            logging.getLogger(__package__).setLevel(level)

    async def __aenter__(self) -> MattermostClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def host(self) -> str:
        return self.state.host

    @property
    def is_connected(self) -> bool:
        return self.state.connected

    @property
    def is_authenticated(self) -> bool:
        return self.state.authenticated

    @property
    def http(self) -> MattermostHttpClient:
        """REST client, created on first use."""
        if self._http is None:
            if self._session is None:
                self._session = aiohttp.ClientSession()
            self._http = MattermostHttpClient(
                self._session,
                self.state.host,
                http_port=self.options.http_port,
                use_tls=self.options.use_tls,
                tls_verify=self.options.tls_verify,
                proxy=self.options.http_proxy,
                timeout=self.options.request_timeout,
            )
        self._http.token = self.state.token
        return self._http

    # -------------------------------------------------------------------------
    # Public API: Subscribers
    # -------------------------------------------------------------------------

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register a callback for a notification.

        Coroutine callbacks are scheduled on the running loop.
        """
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable[..., Any]) -> None:
        """Unregister a callback previously passed to on()."""
        callbacks = self._listeners.get(event)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                result = callback(*args)
            except Exception as err:
                _LOGGER.exception(
                    "[%s] %s callback error: %s", self.state.host, event, err
                )
                continue
            if inspect.iscoroutine(result):
                self._spawn(result)

    # -------------------------------------------------------------------------
    # Public API: Login and bootstrap
    # -------------------------------------------------------------------------

    async def login(
        self, login_id: str, password: str, mfa_token: str | None = None
    ) -> Any:
        """Log in with credentials and bootstrap the session."""
        state = self.state
        state.personal_access_token = False
        state.login_id = login_id
        state.password = password
        state.mfa_token = mfa_token
        _LOGGER.info("[%s] Logging in...", state.host)
        return await self._api_call(
            "POST",
            f"{USERS_ROUTE}/login",
            {"login_id": login_id, "password": password, "token": mfa_token},
            self._on_login,
        )

    async def token_login(self, token: str) -> Any:
        """Log in with a personal access token and bootstrap the session."""
        self.state.token = token
        self.state.personal_access_token = True
        _LOGGER.info("[%s] Logging in with personal access token...", self.state.host)
        return await self._api_call("GET", f"{USERS_ROUTE}/me", None, self._on_login)

    async def get_me(self) -> Any:
        return await self._get(f"{USERS_ROUTE}/me", self._on_me)

    async def get_preferences(self) -> Any:
        return await self._get(f"{USERS_ROUTE}/me/preferences", self._on_preferences)

    async def get_teams(self) -> Any:
        return await self._get(f"{USERS_ROUTE}/me/teams", self._on_teams)

    async def load_users(self, page: int | None = 0) -> Any:
        """Load team members, following pages while they are non-empty.

        With ``page=None`` only the first page is fetched.
        """
        uri = users_page_route(page or 0, self.team_id)
        return await self._get(uri, self._on_load_users, {"page": page})

    async def load_user(self, user_id: str) -> Any:
        return await self._get(f"{USERS_ROUTE}/{user_id}", self._on_load_user)

    async def load_channels(self, page: int | None = None) -> Any:
        """Load the user's channels in the resolved team.

        Without a page index the whole list is fetched at once; with one,
        pages are followed until an empty page.
        """
        uri = f"{self.team_route()}/channels"
        if page is not None:
            uri = f"{uri}?page={page}&per_page={PAGE_SIZE}"
        return await self._get(uri, self._on_channels, {"page": page})

    def team_route(self) -> str:
        return team_route(self.team_id)

    def channel_route(self, channel_id: str) -> str:
        return channel_route(self.team_id, channel_id)

    # -------------------------------------------------------------------------
    # Internal: Bootstrap completion handlers
    # -------------------------------------------------------------------------

    @staticmethod
    def _failed(data: Any) -> bool:
        return data is None or (isinstance(data, dict) and bool(data.get("error")))

    def _on_login(
        self, data: Any, headers: Mapping[str, str] | None, _params: Any = None
    ) -> bool:
        state = self.state
        if data is None:
            _LOGGER.error("[%s] Login call returned nothing", state.host)
            self._emit("error", data)
            state.authenticated = False
            self.reconnect()
            return False

        if not isinstance(data, dict) or not data.get("id"):
            _LOGGER.error("[%s] Login call failed: %s", state.host, data)
            state.authenticated = False
            if isinstance(data, dict) and data.get("status_code") == 401:
                self._emit("auth_failed", data)
            self.reconnect()
            return False

        state.authenticated = True
        if not state.personal_access_token:
            state.token = headers.get("Token") if headers else None

        self.socket_url = build_socket_url(
            state.host,
            use_tls=self.options.use_tls,
            wss_port=self.options.wss_port,
            http_port=self.options.http_port,
        )
        _LOGGER.info("[%s] Websocket URL: %s", state.host, self.socket_url)

        self.identity = User.from_payload(data)
        self._emit("logged_in", self.identity)

        self._spawn(self.get_me())
        self._spawn(self.get_preferences())
        self._spawn(self.get_teams())
        return True

    def _on_me(self, data: Any, _headers: Any = None, _params: Any = None) -> bool:
        if self._failed(data):
            _LOGGER.error("[%s] Failed to load me: %s", self.state.host, _error_of(data))
            self.reconnect()
            return False
        self.me = data
        self._emit("me_loaded", data)
        _LOGGER.info("[%s] Loaded me", self.state.host)
        return True

    def _on_preferences(
        self, data: Any, _headers: Any = None, _params: Any = None
    ) -> bool:
        if self._failed(data):
            _LOGGER.error(
                "[%s] Failed to load preferences: %s", self.state.host, _error_of(data)
            )
            self.reconnect()
            return False
        self.preferences = data
        self._emit("preferences_loaded", data)
        _LOGGER.info("[%s] Loaded preferences", self.state.host)
        return True

    def _on_teams(self, data: Any, _headers: Any = None, _params: Any = None) -> bool:
        if self._failed(data) or not isinstance(data, list):
            _LOGGER.error("[%s] Failed to load teams: %s", self.state.host, _error_of(data))
            self.reconnect()
            return False

        self.teams = data
        self._emit("teams_loaded", data)
        _LOGGER.info("[%s] Found %d teams", self.state.host, len(data))

        group = self.state.group.lower()
        for team in data:
            name = team.get("name") or ""
            _LOGGER.debug("[%s] Testing %s == %s", self.state.host, name, self.state.group)
            if name.lower() == group:
                _LOGGER.info("[%s] Found team %s", self.state.host, team.get("id"))
                self.team_id = team.get("id")
                break

        self._spawn(self.load_users())
        self._spawn(self.load_channels())
        self._spawn(self.connect())
        return True

    def _on_load_users(
        self, data: Any, _headers: Any = None, params: dict[str, Any] | None = None
    ) -> bool:
        if self._failed(data) or not isinstance(data, list):
            _LOGGER.error("[%s] Failed to load profiles from server", self.state.host)
            self._emit("error", {"msg": "failed to load profiles"})
            return False

        for user in data:
            self.users[user["id"]] = user
        _LOGGER.info("[%s] Found %d profiles", self.state.host, len(data))
        self._emit("profiles_loaded", data)

        page = (params or {}).get("page")
        if data and page is not None:
            self._spawn(self.load_users(page + 1))
        return True

    def _on_load_user(
        self, data: Any, _headers: Any = None, _params: Any = None
    ) -> bool:
        if self._failed(data) or not isinstance(data, dict):
            return False
        self.users[data["id"]] = data
        self._emit("profiles_loaded", [data])
        return True

    def _on_channels(
        self, data: Any, _headers: Any = None, params: dict[str, Any] | None = None
    ) -> bool:
        if self._failed(data) or not isinstance(data, list):
            _LOGGER.error(
                "[%s] Failed to get subscribed channels list from server: %s",
                self.state.host,
                _error_of(data),
            )
            self._emit("error", {"msg": "failed to get channel list"})
            return False

        for channel in data:
            self.channels[channel["id"]] = channel
        _LOGGER.info("[%s] Found %d subscribed channels", self.state.host, len(data))
        self._emit("channels_loaded", data)

        page = (params or {}).get("page")
        if data and page is not None:
            self._spawn(self.load_channels(page + 1))
        return True

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        """Open the WebSocket to the computed socket URL.

        Returns:
            True if the socket opened, False otherwise
        """
        state = self.state
        if state.connecting:
            return False
        if not self.socket_url:
            _LOGGER.error("[%s] Cannot connect: no socket URL, log in first", state.host)
            return False

        state.connecting = True
        _LOGGER.info(
            "[%s] Connecting to %s (attempt #%d)",
            state.host,
            self.socket_url,
            state.conn_attempts + 1,
        )

        # Clean up existing connection
        if self._ws is not None:
            previous, self._ws = self._ws, None
            await self._close_socket(previous)

        ws_client = MattermostWsClient()
        try:
            await ws_client.connect(
                self.socket_url,
                verify_tls=self.options.tls_verify,
                proxy=self.options.http_proxy,
                timeout=self.options.connect_timeout,
            )
        except asyncio.CancelledError:
            state.connecting = False
            raise
        except MattermostClientError as err:
            _LOGGER.warning("[%s] Connection failed: %s", state.host, err)
            self._handle_ws_error(err)
            self._handle_ws_close(None, CLOSE_ABNORMAL, str(err))
            return False

        self._ws = ws_client
        await self._handle_ws_open()
        self._listen_task = self._spawn(self._listen(ws_client))
        return True

    def reconnect(self) -> None:
        """Tear down the session and schedule a fresh login.

        The delay grows linearly with the number of consecutive attempts.
        Only one resumption is pending at a time.
        """
        state = self.state
        if state.reconnecting:
            _LOGGER.warning("[%s] Already reconnecting", state.host)
            return

        state.connecting = False
        state.reconnecting = True
        self._cancel_heartbeat()
        state.authenticated = False

        if self._ws is not None:
            # Detach first so the close event no longer drives state
            ws, self._ws = self._ws, None
            state.connected = False
            self._spawn(self._close_socket(ws))

        state.conn_attempts += 1
        delay = self._reconnect_delay()
        _LOGGER.info(
            "[%s] Reconnecting in %.1fs (attempt %d)",
            state.host,
            delay,
            state.conn_attempts,
        )
        self._cancel_reconnect()
        self._reconnect_task = self._spawn(self._reconnect_after_delay(delay))

    async def disconnect(self) -> bool:
        """Close the socket without reconnecting.

        Returns:
            False if not connected, True otherwise
        """
        if not self.state.connected:
            return False
        self.state.auto_reconnect = False
        self._cancel_heartbeat()
        if self._ws is not None:
            await self._close_socket(self._ws)
        return True

    async def close(self) -> None:
        """Shut the client down: cancel every task, close socket and HTTP session."""
        _LOGGER.info("[%s] Closing client", self.state.host)
        self.state.auto_reconnect = False

        current = asyncio.current_task()
        tasks = [
            task
            for task in (
                self._ping_task,
                self._listen_task,
                self._reconnect_task,
                *self._tasks,
            )
            if task is not None and task is not current and not task.done()
        ]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._ping_task = None
        self._listen_task = None
        self._reconnect_task = None

        if self._ws is not None:
            ws, self._ws = self._ws, None
            await self._close_socket(ws)

        self.state.connected = False
        self.state.connecting = False
        self.state.reconnecting = False

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            self._http = None

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    def _handle_ws_error(self, err: Exception) -> None:
        self.state.connecting = False
        self._emit("error", err)

    async def _handle_ws_open(self) -> None:
        state = self.state
        state.connecting = False
        state.reconnecting = False
        state.connected = True
        self._emit("connected")
        state.conn_attempts = 0
        self._last_pong = time.time()
        self._cancel_reconnect()

        _LOGGER.info("[%s] Sending challenge...", state.host)
        await self._send(build_auth_challenge(state.token))

        _LOGGER.info("[%s] Starting pinger...", state.host)
        self._cancel_heartbeat()
        self._ping_task = self._spawn(self._keepalive_loop())

    def _handle_ws_close(
        self, ws: MattermostWsClient | None, code: int, reason: str
    ) -> None:
        self._emit("close", code, reason)
        if ws is not self._ws:
            _LOGGER.debug("[%s] Detached socket closed (%s)", self.state.host, code)
            return

        _LOGGER.info("[%s] WebSocket closed: %s %s", self.state.host, code, reason)
        self._ws = None
        self.state.connecting = False
        self.state.connected = False
        self.socket_url = None
        if self.state.auto_reconnect:
            self.reconnect()
        else:
            self._cancel_heartbeat()

    def _reconnect_delay(self) -> float:
        delay = self.state.conn_attempts * self.options.reconnect_delay
        if self.options.reconnect_max_delay is not None:
            delay = min(delay, self.options.reconnect_max_delay)
        return delay

    async def _reconnect_after_delay(self, delay: float) -> None:
        """Log in again after delay with the last used auth mode."""
        state = self.state
        try:
            await asyncio.sleep(delay)
            self._reconnect_task = None
            state.reconnecting = False
            _LOGGER.info("[%s] Attempting reconnect", state.host)
            if state.personal_access_token and state.token:
                await self.token_login(state.token)
            else:
                await self.login(state.login_id or "", state.password or "", state.mfa_token)
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Reconnect cancelled", state.host)
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    def _cancel_reconnect(self) -> None:
        """Drop a resumption that is still waiting, unless it is the caller."""
        task = self._reconnect_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            _LOGGER.debug("[%s] Cancelling pending reconnect", self.state.host)
            task.cancel()
        self._reconnect_task = None

    async def _close_socket(self, ws: MattermostWsClient) -> None:
        try:
            await asyncio.wait_for(ws.close(), timeout=2.0)
        except TimeoutError:
            _LOGGER.warning("[%s] WebSocket close timed out", self.state.host)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a coroutine in the background, keeping a reference until done."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error(
                "[%s] Background task failed: %s", self.state.host, err, exc_info=err
            )

    # -------------------------------------------------------------------------
    # Internal: Message Listener
    # -------------------------------------------------------------------------

    async def _listen(self, ws: MattermostWsClient) -> None:
        """Feed frames of one socket to the dispatcher until it closes."""
        message_count = 0
        try:
            async for msg in ws:
                if msg.type is MattermostWsMessageType.TEXT:
                    message_count += 1
                    try:
                        frame = ws.decode_json(msg)
                    except (ValueError, MattermostClientError) as err:
                        _LOGGER.warning("[%s] Invalid frame: %s", self.state.host, err)
                        continue
                    self.on_message(frame)

                elif msg.type is MattermostWsMessageType.ERROR:
                    reason = str(msg.data or "")
                    self._handle_ws_error(
                        MattermostConnectionError(f"WebSocket error: {reason}")
                    )
                    self._handle_ws_close(ws, CLOSE_ABNORMAL, reason)
                    break

                elif msg.type is MattermostWsMessageType.CLOSED:
                    info = msg.data if isinstance(msg.data, dict) else {}
                    self._handle_ws_close(
                        ws, info.get("code", CLOSE_ABNORMAL), info.get("reason", "")
                    )
                    break
        except asyncio.CancelledError:
            _LOGGER.debug(
                "[%s] Listener cancelled (%d messages)", self.state.host, message_count
            )
            raise

    # -------------------------------------------------------------------------
    # Internal: Keepalive
    # -------------------------------------------------------------------------

    async def _keepalive_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.state.ping_interval)
                if not await self._heartbeat_tick():
                    break
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Heartbeat cancelled", self.state.host)

    async def _heartbeat_tick(self) -> bool:
        """Check liveness and send a probe.

        Returns:
            False once reconnect has been triggered, True otherwise
        """
        state = self.state
        if not state.connected:
            _LOGGER.error("[%s] Not connected in heartbeat", state.host)
            self.reconnect()
            return False

        now = time.time()
        if self._last_pong is not None and now - self._last_pong > 2 * state.ping_interval:
            _LOGGER.error(
                "[%s] Last pong is too old: %.1fs", state.host, now - self._last_pong
            )
            state.authenticated = False
            state.connected = False
            self.reconnect()
            return False

        _LOGGER.debug("[%s] ping", state.host)
        await self._send(build_ping())
        return True

    def _cancel_heartbeat(self) -> None:
        if self._ping_task is not None:
            self._ping_task.cancel()
            self._ping_task = None

    # -------------------------------------------------------------------------
    # Internal: Socket frames
    # -------------------------------------------------------------------------

    async def _send(self, message: dict[str, Any]) -> dict[str, Any] | bool:
        """Send a frame stamped with the next sequence number.

        Returns:
            The frame as sent, or False when not connected or the send failed
        """
        if not self.state.connected or self._ws is None:
            return False

        self._message_id += 1
        frame = {**message, "id": self._message_id, "seq": self._message_id}
        self._pending[self._message_id] = frame

        try:
            await self._ws.send_json(frame)
        except MattermostClientError as err:
            _LOGGER.warning(
                "[%s] Failed to send frame %d: %s", self.state.host, frame["id"], err
            )
            return False
        return frame

    def on_message(self, frame: dict[str, Any]) -> None:
        """Classify an inbound frame and republish it."""
        self._emit("raw_message", frame)

        seq_reply = frame.get("seq_reply")
        if seq_reply is not None:
            self._pending.pop(seq_reply, None)

        message = Message.from_payload(frame)
        kind = message.kind

        if kind is EventKind.PING or message.text == "pong":
            _LOGGER.debug("[%s] ACK ping", self.state.host)
            self._last_pong = time.time()
            self._emit("ping", frame)
        elif kind is EventKind.POSTED:
            self._emit("message", message)
        elif kind in INFORMATIONAL_EVENTS:
            self._emit(kind.value, frame)
        elif kind is EventKind.NEW_USER:
            user_id = message.data.get("user_id")
            if user_id:
                self._spawn(self.load_user(user_id))
            self._emit("new_user", frame)
        else:
            _LOGGER.debug("[%s] Received unhandled message: %s", self.state.host, frame)

    # -------------------------------------------------------------------------
    # Public API: Lookups
    # -------------------------------------------------------------------------

    def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        for user in self.users.values():
            if user.get("email") == email:
                return user
        return None

    def get_all_channels(self) -> dict[str, dict[str, Any]]:
        return self.channels

    def get_channel_by_id(self, channel_id: str) -> dict[str, Any] | None:
        return self.channels.get(channel_id)

    def find_channel_by_name(self, name: str) -> dict[str, Any] | None:
        for channel in self.channels.values():
            if channel.get("name") == name or channel.get("display_name") == name:
                return channel
        return None

    async def get_user_direct_message_channel(self, user_id: str) -> Any:
        """Return the direct channel with a user, creating it when missing."""
        if self.identity is None:
            return None
        for name in direct_channel_names(self.identity.id, user_id):
            channel = self.find_channel_by_name(name)
            if channel is not None:
                return channel
        return await self.create_direct_channel(user_id)

    # -------------------------------------------------------------------------
    # Public API: Posting
    # -------------------------------------------------------------------------

    async def post_message(self, msg: str | Mapping[str, Any], channel_id: str) -> bool:
        """Post a message, splitting it into several posts when too long.

        Args:
            msg: Text, or a mapping with ``message`` and optional ``props``
                and ``file_ids``
            channel_id: Target channel

        Returns:
            True once every chunk has been acknowledged
        """
        if self.identity is None:
            _LOGGER.error("[%s] Cannot post: not logged in", self.state.host)
            return False

        post_data: dict[str, Any] = {
            "message": msg,
            "file_ids": [],
            "create_at": 0,
            "user_id": self.identity.id,
            "channel_id": channel_id,
        }
        if not isinstance(msg, str):
            post_data["message"] = msg.get("message")
            if msg.get("props"):
                post_data["props"] = msg["props"]
            if msg.get("file_ids"):
                post_data["file_ids"] = msg["file_ids"]

        chunks = chunk_message(post_data["message"])
        post_data["message"] = chunks.pop(0)

        data = await self._api_call("POST", "/posts", post_data)
        if self._failed(data):
            _LOGGER.error("[%s] Failed to post message: %s", self.state.host, _error_of(data))
            return False
        _LOGGER.debug("[%s] Posted message", self.state.host)

        if chunks:
            _LOGGER.debug(
                "[%s] Posting remainder of message (%d chunks)",
                self.state.host,
                len(chunks),
            )
            return await self.post_message("".join(chunks), channel_id)
        return True

    async def custom_message(self, post_data: Mapping[str, Any], channel_id: str) -> bool:
        """Post a caller-built payload, keeping its fields on every chunk."""
        post = dict(post_data)
        chunks: list[str] = []
        if post.get("message") is not None:
            chunks = chunk_message(post["message"])
            post["message"] = chunks.pop(0)
        post["channel_id"] = channel_id

        data = await self._api_call("POST", "/posts", post)
        if self._failed(data):
            _LOGGER.error(
                "[%s] Failed to post custom message: %s", self.state.host, _error_of(data)
            )
            return False
        _LOGGER.debug("[%s] Posted custom message", self.state.host)

        if chunks:
            post["message"] = "".join(chunks)
            return await self.custom_message(post, channel_id)
        return True

    async def post_command(self, channel_id: str, command: str) -> bool:
        """Execute a slash command in a channel."""
        data = await self._api_call(
            "POST", "/commands/execute", {"command": command, "channel_id": channel_id}
        )
        _LOGGER.debug("[%s] Ran command", self.state.host)
        return not self._failed(data)

    async def set_channel_header(self, channel_id: str, header: str) -> bool:
        data = await self._api_call(
            "POST",
            f"{self.team_route()}/channels/update_header",
            {"channel_id": channel_id, "channel_header": header},
        )
        _LOGGER.debug("[%s] Channel header updated", self.state.host)
        return not self._failed(data)

    async def dialog(self, trigger_id: str, url: str, dialog: dict[str, Any]) -> Any:
        """Open an interactive dialog."""
        data = await self._api_call(
            "POST",
            "/actions/dialogs/open",
            {"trigger_id": trigger_id, "url": url, "dialog": dialog},
        )
        _LOGGER.debug("[%s] Created dialog", self.state.host)
        return data

    async def edit_post(self, post_id: str, msg: str | Mapping[str, Any]) -> Any:
        post_data = {"id": post_id, "message": msg} if isinstance(msg, str) else dict(msg)
        data = await self._api_call("PUT", f"/posts/{post_id}", post_data)
        _LOGGER.debug("[%s] Edited post", self.state.host)
        return data

    async def upload_file(self, channel_id: str, file: Any) -> Any:
        """Upload a file to a channel as multipart form data.

        Returns:
            The server's file info response
        """
        data = await self._api_call(
            "POST", "/files", {"channel_id": channel_id, "files": file}, form=True
        )
        _LOGGER.debug("[%s] Posted file", self.state.host)
        return data

    async def react(self, message_id: str, emoji: str) -> Any:
        """Add a reaction; False when not logged in."""
        if self.identity is None:
            return False
        data = await self._api_call(
            "POST",
            "/reactions",
            {
                "user_id": self.identity.id,
                "post_id": message_id,
                "emoji_name": emoji,
                "create_at": 0,
            },
        )
        _LOGGER.debug("[%s] Created reaction", self.state.host)
        return data

    async def unreact(self, message_id: str, emoji: str) -> Any:
        data = await self._api_call(
            "DELETE", f"{USERS_ROUTE}/me/posts/{message_id}/reactions/{emoji}"
        )
        _LOGGER.debug("[%s] Deleted reaction", self.state.host)
        return data

    async def create_direct_channel(self, user_id: str) -> Any:
        if self.identity is None:
            return None
        data = await self._api_call(
            "POST", "/channels/direct", [user_id, self.identity.id]
        )
        if not self._failed(data) and isinstance(data, dict) and data.get("id"):
            self.channels[data["id"]] = data
            _LOGGER.info("[%s] Created direct channel", self.state.host)
        return data

    # -------------------------------------------------------------------------
    # Internal: REST plumbing
    # -------------------------------------------------------------------------

    async def _get(
        self,
        path: str,
        callback: ApiCallback,
        callback_params: dict[str, Any] | None = None,
    ) -> Any:
        _LOGGER.info("[%s] Loading %s", self.state.host, path)
        return await self._api_call("GET", path, None, callback, callback_params)

    async def _api_call(
        self,
        method: str,
        path: str,
        params: Any = None,
        callback: ApiCallback | None = None,
        callback_params: dict[str, Any] | None = None,
        *,
        form: bool = False,
    ) -> Any:
        """Call a REST route; failures become ``{"id": None, "error": ...}``.

        Returns:
            The callback's result when a callback is given, the data otherwise
        """
        _LOGGER.debug("[%s] %s %s", self.state.host, method, path)
        headers: Mapping[str, str]
        try:
            data, headers = await self.http.request(method, path, params, form=form)
        except MattermostResponseError as err:
            data = {"id": None, "error": str(err), "status_code": err.status}
            headers = err.headers
        except MattermostTimeout as err:
            data = {"id": None, "error": str(err)}
            headers = {}
        except MattermostConnectionError as err:
            data = {"id": None, "error": err.errno if err.errno is not None else str(err)}
            headers = {}

        if callback is None:
            return data
        return callback(data, headers, callback_params if callback_params is not None else {})


def _error_of(data: Any) -> Any:
    if isinstance(data, dict):
        return data.get("error")
    return data
