from __future__ import annotations

import logging

from google.cloud import secretmanager

logger = logging.getLogger(__name__)


class SecretNotFoundError(Exception):
    """Raised when a secret has no payload."""


class SecretAccessor:
    """Reads secrets from Google Cloud Secret Manager.

    Every call fetches the latest version; nothing is cached.
    """

    def __init__(
        self,
        *,
        project_id: str | None,
        client: secretmanager.SecretManagerServiceClient | None = None,
    ) -> None:
        self.project_id = project_id
        self._client = client

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def secret_path(self, secret_name: str) -> str:
        if not self.project_id:
            raise ValueError(
                f"Cannot read secret '{secret_name}': Google Cloud project ID is not configured."
            )
        return f"projects/{self.project_id}/secrets/{secret_name}/versions/latest"

    def get_secret(self, secret_name: str) -> str:
        """Fetch the latest value of a secret.

        Args:
            secret_name: Secret ID (e.g., "IMAGEN_API_KEY")

        Returns:
            The decoded secret value

        Raises:
            SecretNotFoundError: The secret version has no payload or it is empty
        """
        name = self.secret_path(secret_name)
        response = self.client.access_secret_version(name=name)

        payload = None
        if response.payload is not None and response.payload.data:
            payload = response.payload.data.decode("UTF-8")

        if not payload:
            raise SecretNotFoundError(f"Secret '{secret_name}' not found or empty.")

        logger.debug("Fetched secret", extra={"secret_name": secret_name})
        return payload


__all__ = ["SecretAccessor", "SecretNotFoundError"]
