"""Protocol helpers for Mattermost REST routes and WebSocket frames."""

from __future__ import annotations

from typing import Any

API_PREFIX = "/api/v4"
USERS_ROUTE = "/users"
PAGE_SIZE = 200


def build_api_url(host: str, path: str, *, use_tls: bool, http_port: int | None) -> str:
    """Build the absolute URL of a REST route.

    Args:
        host: Server hostname
        path: Route below the API prefix, starting with "/"
        use_tls: Use https instead of http
        http_port: Explicit port, omitted from the URL when None
    """
    scheme = "https" if use_tls else "http"
    port = f":{http_port}" if http_port is not None else ""
    return f"{scheme}://{host}{port}{API_PREFIX}{path}"


def build_socket_url(
    host: str,
    *,
    use_tls: bool,
    wss_port: int | None,
    http_port: int | None,
) -> str:
    """Build the WebSocket URL.

    With TLS the wss port is preferred; otherwise (or when it is unset) the
    http port is used, and no port at all when neither is configured.
    """
    scheme = "wss" if use_tls else "ws"
    if use_tls and wss_port is not None:
        port = f":{wss_port}"
    elif http_port is not None:
        port = f":{http_port}"
    else:
        port = ""
    return f"{scheme}://{host}{port}{API_PREFIX}/websocket"


def build_auth_challenge(token: str | None) -> dict[str, Any]:
    """Construct the authentication_challenge frame sent after opening."""
    return {"action": "authentication_challenge", "data": {"token": token}}


def build_ping() -> dict[str, Any]:
    """Construct the heartbeat probe frame."""
    return {"action": "ping"}


def users_page_route(page: int, team_id: str | None) -> str:
    return f"{USERS_ROUTE}?page={page}&per_page={PAGE_SIZE}&in_team={team_id}"


def team_route(team_id: str | None) -> str:
    return f"{USERS_ROUTE}/me/teams/{team_id}"


def channel_route(team_id: str | None, channel_id: str) -> str:
    return f"{team_route(team_id)}/channels/{channel_id}"


def direct_channel_names(self_id: str, user_id: str) -> tuple[str, str]:
    """Both possible names of the direct channel between two users."""
    return f"{self_id}__{user_id}", f"{user_id}__{self_id}"
