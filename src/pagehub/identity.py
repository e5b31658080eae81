from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

import httpx

from .config import ServiceEndpoints
from .models.identity import AuthSession

logger = logging.getLogger(__name__)

Listener = Callable[[AuthSession | None], Awaitable[None]]


class IdentityError(Exception):
    """Raised when Firebase Authentication rejects a request."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class Subscription:
    """Handle returned by :meth:`IdentityProvider.subscribe`."""

    def __init__(self, provider: "IdentityProvider", listener: Listener) -> None:
        self._provider = provider
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._provider._remove_listener(self._listener)


class IdentityProvider:
    """Firebase Authentication over its REST API.

    Holds the session of one visitor. Listeners are notified with the current
    session on subscription and after every sign-in or sign-out.
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        api_key: str,
        endpoints: ServiceEndpoints,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._endpoints = endpoints
        self._session: AuthSession | None = None
        self._listeners: list[Listener] = []

    @property
    def current_session(self) -> AuthSession | None:
        return self._session

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        subscription = Subscription(self, listener)
        try:
            await listener(self._session)
        except BaseException:
            subscription.cancel()
            raise
        return subscription

    def _remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    async def sign_in_anonymously(self) -> AuthSession:
        url = f"{self._endpoints.identity_toolkit_url}/v1/accounts:signUp"
        data = await self._post(url, json={"returnSecureToken": True})

        expires_in = int(data.get("expiresIn", 3600))
        session = AuthSession(
            uid=data["localId"],
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )
        logger.info("Signed in anonymously", extra={"uid": session.uid})

        await self._set_session(session)
        return session

    async def sign_out(self) -> None:
        await self._set_session(None)

    async def get_id_token(self) -> str:
        """Return a usable ID token, refreshing the session when it is about to expire."""
        session = self._session
        if session is None:
            raise IdentityError("No user is signed in.", code="NO_SESSION")
        if not session.needs_refresh():
            return session.id_token

        url = f"{self._endpoints.secure_token_url}/v1/token"
        data = await self._post(
            url,
            data={"grant_type": "refresh_token", "refresh_token": session.refresh_token},
        )
        # The uid does not change on refresh, so listeners are not notified.
        self._session = session.with_tokens(
            id_token=data["id_token"],
            refresh_token=data["refresh_token"],
            expires_in=int(data.get("expires_in", 3600)),
        )
        logger.debug("Refreshed ID token", extra={"uid": session.uid})
        return self._session.id_token

    async def _set_session(self, session: AuthSession | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            await listener(session)

    async def _post(self, url: str, **kwargs) -> dict:
        try:
            response = await self._http.post(url, params={"key": self._api_key}, **kwargs)
        except httpx.HTTPError as exc:
            raise IdentityError(str(exc) or "Authentication request failed.") from exc

        if response.is_error:
            code = None
            try:
                code = response.json().get("error", {}).get("message")
            except ValueError:
                pass
            raise IdentityError(
                f"Authentication request failed: {code or response.status_code}",
                code=code,
            )
        return response.json()


__all__ = ["IdentityProvider", "IdentityError", "Subscription", "Listener"]
