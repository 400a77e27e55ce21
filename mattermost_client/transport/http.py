"""HTTP client for Mattermost REST endpoints."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import aiohttp

from ..errors import (
    MattermostConnectionError,
    MattermostResponseError,
    MattermostTimeout,
)
from ..protocol import build_api_url

SUCCESS_STATUSES = frozenset({200, 201})


class MattermostHttpClient:
    """HTTP client wrapper for Mattermost REST endpoints."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        host: str,
        *,
        http_port: int | None = None,
        use_tls: bool = True,
        tls_verify: bool = True,
        proxy: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._session = session
        self._host = host
        self._http_port = http_port
        self._use_tls = use_tls
        self._tls_verify = tls_verify
        self._proxy = proxy
        self._timeout = timeout
        self.token: str | None = None

    def url(self, path: str) -> str:
        return build_api_url(
            self._host, path, use_tls=self._use_tls, http_port=self._http_port
        )

    def _headers(self, body: str | None) -> dict[str, str]:
        payload = body or ""
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(payload.encode("utf-8"))),
            "X-Requested-With": "XMLHttpRequest",
        }
        if self.token:
            headers["Authorization"] = f"BEARER {self.token}"
        return headers

    @staticmethod
    def _form_data(params: Mapping[str, Any]) -> aiohttp.FormData:
        form = aiohttp.FormData()
        for name, value in params.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    form.add_field(name, item)
            else:
                form.add_field(name, value)
        return form

    async def request(
        self,
        method: str,
        path: str,
        params: Any = None,
        *,
        form: bool = False,
    ) -> tuple[Any, Mapping[str, str]]:
        """Call a REST route and return the decoded body and response headers.

        Args:
            method: HTTP method
            path: Route below the API prefix
            params: JSON body, or form fields when ``form`` is set
            form: Send ``params`` as multipart/form-data

        Raises:
            MattermostResponseError: If the status is not 200 or 201
            MattermostTimeout: If the request times out
            MattermostConnectionError: If the network request fails
        """
        url = self.url(path)
        data: Any
        if form:
            headers = self._headers(None)
            # aiohttp sets the multipart content type with its boundary
            del headers["Content-Type"]
            del headers["Content-Length"]
            data = self._form_data(params or {})
        else:
            data = json.dumps(params) if params is not None else None
            headers = self._headers(data)

        try:
            async with self._session.request(
                method,
                url,
                data=data,
                headers=headers,
                proxy=self._proxy,
                ssl=None if self._tls_verify else False,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                text = await resp.text(errors="replace")
                value = _decode_body(text)
                if resp.status not in SUCCESS_STATUSES:
                    raise MattermostResponseError(
                        resp.status,
                        f"API response: {resp.status} {json.dumps(text)}",
                        body=value,
                        headers=resp.headers,
                    )
                return value, resp.headers
        except TimeoutError as err:
            raise MattermostTimeout(f"{method} {path} timed out") from err
        except aiohttp.ClientError as err:
            raise MattermostConnectionError(
                f"{method} {path} failed", errno=getattr(err, "errno", None)
            ) from err
        except UnicodeDecodeError as err:
            raise MattermostConnectionError(
                f"{method} {path} returned an undecodable body"
            ) from err


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text
