"""The transport capability used by sessions, and its httpx implementation."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx

from .endpoint import sanitize_headers
from .exceptions import MwActionNetworkError, MwActionTimeoutError
from .logging import logger
from .models import TransportResponse


class Transport(Protocol):
    """Performs the actual network calls for a session.

    Parameters are already in wire form (string values). Implementations
    return the status, the lowercased headers without ``set-cookie``, and
    the decoded JSON body.
    """

    async def get(self, params: Mapping[str, str], headers: Mapping[str, str]) -> TransportResponse:
        ...

    async def post(
        self,
        url_params: Mapping[str, str],
        body_params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> TransportResponse:
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """Transport backed by an ``httpx.AsyncClient``.

    Cookies set by the API persist in the client's cookie jar, which is what
    keeps a logged-in session logged in.
    """

    default_timeout = 30.0

    def __init__(
        self,
        api_url: str,
        *,
        httpx_client: httpx.AsyncClient | None = None,
        timeout: float = default_timeout,
        follow_redirects: bool = True,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._httpx = httpx_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=follow_redirects,
            trust_env=False,
        )

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._httpx.aclose()

    async def get(self, params: Mapping[str, str], headers: Mapping[str, str]) -> TransportResponse:
        return await self._send("GET", params=dict(params), data=None, headers=headers)

    async def post(
        self,
        url_params: Mapping[str, str],
        body_params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> TransportResponse:
        return await self._send("POST", params=dict(url_params), data=dict(body_params), headers=headers)

    async def _send(
        self,
        method: str,
        *,
        params: dict[str, str],
        data: dict[str, str] | None,
        headers: Mapping[str, str],
    ) -> TransportResponse:
        logger.debug(f"{method} {self.api_url} headers={sanitize_headers(headers)}")
        try:
            response = await self._httpx.request(
                method,
                self.api_url,
                params=params,
                data=data,
                headers=dict(headers),
            )
        except httpx.TimeoutException as exc:
            raise MwActionTimeoutError("Request timed out", cause=exc) from exc
        except httpx.NetworkError as exc:
            raise MwActionNetworkError("Network error", cause=exc) from exc

        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=self._parse_body(response),
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type.lower():
            return response.text
        return response.json()
