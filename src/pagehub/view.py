from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from .config import ClientConfig
from .identity import IdentityError, IdentityProvider, Subscription
from .models.generation import (
    EndpointError,
    GenerationRequest,
    SitePage,
    SiteUrl,
    classify_response,
)
from .models.identity import AuthSession

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Please provide a website description and ensure you are logged in."
SIGN_IN_FAILED_MESSAGE = "Failed to sign in anonymously. Please try again."
ENDPOINT_ERROR_PREFIX = "Function Error: "
UNEXPECTED_DATA_MESSAGE = "Function returned unexpected data. Could not get website URL."
TRANSPORT_ERROR_PREFIX = "Failed to generate website: "
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."

Invoker = Callable[[dict[str, Any]], Awaitable[Any]]


class FormState(BaseModel):
    description: str = ""
    loading: bool = False
    error: str | None = None
    url: str | None = None
    user: AuthSession | None = None


class GeneratorView:
    """State of the generator page for one browser session."""

    def __init__(
        self,
        *,
        config: ClientConfig,
        identity: IdentityProvider,
        invoke: Invoker,
    ) -> None:
        self._config = config
        self._identity = identity
        self._invoke = invoke
        self._subscription: Subscription | None = None
        self._mount_lock = asyncio.Lock()
        self.state = FormState()

    @property
    def mounted(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def can_submit(self) -> bool:
        return (
            not self.state.loading
            and self.state.user is not None
            and bool(self.state.description.strip())
        )

    async def mount(self) -> None:
        # Concurrent mounts wait for the first one instead of subscribing again.
        async with self._mount_lock:
            if self.mounted:
                return
            self._subscription = await self._identity.subscribe(self._on_identity_changed)

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    async def _on_identity_changed(self, session: AuthSession | None) -> None:
        if session is not None:
            self.state.user = session
            logger.info("Logged in", extra={"uid": session.uid})
            return

        logger.info("Attempting anonymous sign-in")
        try:
            await self._identity.sign_in_anonymously()
        except IdentityError as exc:
            logger.error("Anonymous sign-in failed", extra={"error": exc.message})
            self.state.error = SIGN_IN_FAILED_MESSAGE

    async def submit(self) -> None:
        state = self.state
        if state.user is None or not state.description.strip():
            state.url = None
            state.error = MISSING_INPUT_MESSAGE
            return

        user_id = state.user.uid
        request = GenerationRequest(description=state.description, user_id=user_id)

        state.loading = True
        state.error = None
        state.url = None

        try:
            result = await self._invoke(request.to_payload())
            outcome = classify_response(result)

            if isinstance(outcome, SiteUrl):
                state.url = outcome.url
            elif isinstance(outcome, SitePage):
                state.url = self._config.site_url(
                    user_id=user_id,
                    project_id=outcome.project_id,
                    page_id=outcome.page_id,
                )
            elif isinstance(outcome, EndpointError):
                state.error = f"{ENDPOINT_ERROR_PREFIX}{outcome.message}"
            else:
                state.error = UNEXPECTED_DATA_MESSAGE
        except Exception as exc:
            logger.error(
                "Error calling generation function",
                exc_info=True,
                extra={"uid": user_id, "error": str(exc)},
            )
            message = getattr(exc, "message", None) or str(exc)
            state.error = f"{TRANSPORT_ERROR_PREFIX}{message or UNKNOWN_ERROR_MESSAGE}"
        finally:
            state.loading = False

        if state.url:
            logger.info("Website generated", extra={"uid": user_id, "url": state.url})


__all__ = [
    "FormState",
    "GeneratorView",
    "MISSING_INPUT_MESSAGE",
    "SIGN_IN_FAILED_MESSAGE",
    "ENDPOINT_ERROR_PREFIX",
    "UNEXPECTED_DATA_MESSAGE",
    "TRANSPORT_ERROR_PREFIX",
    "UNKNOWN_ERROR_MESSAGE",
]
