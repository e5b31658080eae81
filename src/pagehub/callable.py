from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

TokenSource = Callable[[], Awaitable[str]]


class CallableError(Exception):
    """Error envelope returned by a callable function, or a failed call."""

    def __init__(self, status: str, message: str | None = None, details: Any = None) -> None:
        super().__init__(message or status)
        self.status = status
        self.message = message
        self.details = details


class CallableInvoker:
    """Client for one HTTPS callable function.

    Speaks the callable wire protocol: the request body is ``{"data": ...}``
    and a successful response is ``{"result": ...}``.
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        url: str,
        token_source: TokenSource | None = None,
    ) -> None:
        self._http = http
        self._url = url
        self._token_source = token_source

    @property
    def url(self) -> str:
        return self._url

    async def __call__(self, data: dict[str, Any]) -> Any:
        headers = {"Content-Type": "application/json"}
        if self._token_source is not None:
            headers["Authorization"] = f"Bearer {await self._token_source()}"

        response = await self._http.post(self._url, json={"data": data}, headers=headers)

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            raise CallableError(
                error.get("status", "INTERNAL"),
                error.get("message"),
                error.get("details"),
            )
        if response.is_error:
            raise CallableError("INTERNAL", "internal")
        if not isinstance(body, dict) or not ("result" in body or "data" in body):
            raise CallableError("INTERNAL", "Response is missing data field.")

        # Older servers answer with "data" instead of "result".
        return body["result"] if "result" in body else body["data"]


__all__ = ["CallableInvoker", "CallableError", "TokenSource"]
