from __future__ import annotations

import logging
import os

import httpx
from google.auth.credentials import AnonymousCredentials
from google.cloud import firestore

from .callable import CallableInvoker
from .config import ClientConfig
from .identity import IdentityProvider

logger = logging.getLogger(__name__)


class ServiceConnections:
    """External service handles of the web client.

    Built once at startup from a :class:`ClientConfig` and handed to whatever
    needs them. Each visitor gets its own identity provider and invoker; the
    HTTP client and Firestore client are shared.
    """

    def __init__(self, config: ClientConfig, *, http: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.http = http or httpx.AsyncClient(timeout=config.http_timeout)
        self._firestore: firestore.Client | None = None

        if config.endpoints.emulated:
            logger.info(
                "Using Firebase emulators",
                extra={
                    "auth": config.endpoints.identity_toolkit_url,
                    "firestore": config.endpoints.firestore_emulator_host,
                    "functions": config.endpoints.functions_emulator_origin,
                },
            )

    def open_identity(self) -> IdentityProvider:
        return IdentityProvider(
            http=self.http,
            api_key=self.config.api_key,
            endpoints=self.config.endpoints,
        )

    def generate_website_invoker(self, identity: IdentityProvider) -> CallableInvoker:
        return CallableInvoker(
            http=self.http,
            url=self.config.callable_url(),
            token_source=identity.get_id_token,
        )

    @property
    def firestore(self) -> firestore.Client:
        if self._firestore is None:
            self._firestore = self._open_firestore()
        return self._firestore

    def _open_firestore(self) -> firestore.Client:
        emulator_host = self.config.endpoints.firestore_emulator_host
        if emulator_host:
            # The Firestore client only discovers its emulator through this variable.
            os.environ["FIRESTORE_EMULATOR_HOST"] = emulator_host
            return firestore.Client(
                project=self.config.project_id,
                credentials=AnonymousCredentials(),
            )
        return firestore.Client(project=self.config.project_id)

    async def aclose(self) -> None:
        await self.http.aclose()
        if self._firestore is not None:
            self._firestore.close()
            self._firestore = None


__all__ = ["ServiceConnections"]
