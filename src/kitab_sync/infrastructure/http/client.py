"""httpx-backed JSON transport for the marketplace REST API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from kitab_sync.application.exceptions import NetworkFailure, ServerRejection
from kitab_sync.application.ports.auth import CredentialProvider

logger = logging.getLogger(__name__)


class HttpxRemoteClient:
    """Implements application.ports.remote.RemoteClient."""

    def __init__(
        self,
        base_url: str,
        credentials: CredentialProvider,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await self._request("POST", path, json=json, params=params)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self._credentials.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=self._headers(),
            )
        except httpx.TransportError as exc:
            logger.debug("%s %s failed: %r", method, path, exc)
            raise NetworkFailure(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            detail = _error_detail(response)
            logger.debug("%s %s -> %d: %s", method, path, response.status_code, detail)
            raise ServerRejection(detail, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ServerRejection(
                "Response body is not valid JSON", status_code=response.status_code,
            ) from exc


def _error_detail(response: httpx.Response) -> str:
    """Return the backend's ``detail`` verbatim when it sent one."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return response.reason_phrase
