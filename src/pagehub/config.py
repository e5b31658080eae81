from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import google.auth
from google.auth.exceptions import DefaultCredentialsError

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_ID = "growmar"
DEFAULT_REGION = "us-central1"
GENERATE_FUNCTION_NAME = "callable_generateWebsiteJson"

LOCAL_HOSTNAME = "localhost"
AUTH_EMULATOR_PORT = 12000
FIRESTORE_EMULATOR_PORT = 12001
FUNCTIONS_EMULATOR_PORT = 12002

PROJECT_ID_ENV_VARS = ("GCP_PROJECT", "GCLOUD_PROJECT", "GOOGLE_CLOUD_PROJECT")


@dataclass(frozen=True)
class ServiceEndpoints:
    """Where the identity, data store and function invoker connections point."""

    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com"
    secure_token_url: str = "https://securetoken.googleapis.com"
    firestore_emulator_host: str | None = None
    functions_emulator_origin: str | None = None

    @property
    def emulated(self) -> bool:
        return self.functions_emulator_origin is not None

    @classmethod
    def production(cls) -> "ServiceEndpoints":
        return cls()

    @classmethod
    def emulators(cls, host: str = LOCAL_HOSTNAME) -> "ServiceEndpoints":
        auth_origin = f"http://{host}:{AUTH_EMULATOR_PORT}"
        return cls(
            identity_toolkit_url=f"{auth_origin}/identitytoolkit.googleapis.com",
            secure_token_url=f"{auth_origin}/securetoken.googleapis.com",
            firestore_emulator_host=f"{host}:{FIRESTORE_EMULATOR_PORT}",
            functions_emulator_origin=f"http://{host}:{FUNCTIONS_EMULATOR_PORT}",
        )

    @classmethod
    def for_hostname(cls, hostname: str | None) -> "ServiceEndpoints":
        if hostname == LOCAL_HOSTNAME:
            logger.info("Connecting to Firebase emulators", extra={"hostname": hostname})
            return cls.emulators()
        return cls.production()


@dataclass(frozen=True)
class ClientConfig:
    """Configuration of the web client, built once at process start."""

    project_id: str = DEFAULT_PROJECT_ID
    api_key: str = ""
    region: str = DEFAULT_REGION
    function_name: str = GENERATE_FUNCTION_NAME
    endpoints: ServiceEndpoints = ServiceEndpoints()
    environment: str = "dev"
    session_secret: str = "pagehub-session"
    http_timeout: float | None = None

    def callable_url(self, name: str | None = None) -> str:
        name = name or self.function_name
        origin = self.endpoints.functions_emulator_origin
        if origin:
            return f"{origin}/{self.project_id}/{self.region}/{name}"
        return f"https://{self.region}-{self.project_id}.cloudfunctions.net/{name}"

    def site_url(self, *, user_id: str, project_id: str, page_id: str) -> str:
        """URL a deployed page is served from on Firebase Hosting."""
        return (
            f"https://{self.project_id}.web.app/sites/"
            f"{user_id}/{project_id}/{page_id}/index.html"
        )

    @classmethod
    def from_env(cls) -> "ClientConfig":
        timeout = os.getenv("PAGEHUB_HTTP_TIMEOUT")
        return cls(
            project_id=os.getenv("PAGEHUB_PROJECT_ID", DEFAULT_PROJECT_ID),
            api_key=os.getenv("PAGEHUB_API_KEY", ""),
            region=os.getenv("PAGEHUB_FUNCTIONS_REGION", DEFAULT_REGION),
            endpoints=ServiceEndpoints.for_hostname(os.getenv("PAGEHUB_HOSTNAME")),
            environment=os.getenv("ENVIRONMENT", "dev"),
            session_secret=os.getenv("PAGEHUB_SESSION_SECRET", "pagehub-session"),
            http_timeout=float(timeout) if timeout else None,
        )


@dataclass(frozen=True)
class FunctionsConfig:
    """Configuration of the callable functions service."""

    project_id: str | None
    environment: str = "dev"
    emulated: bool = False

    @classmethod
    def from_env(cls) -> "FunctionsConfig":
        return cls(
            project_id=resolve_project_id(),
            environment=os.getenv("ENVIRONMENT", "dev"),
            emulated=os.getenv("FUNCTIONS_EMULATOR", "").lower() == "true",
        )


def resolve_project_id() -> str | None:
    """Find the Google Cloud project the process runs in.

    Environment variables are tried in order, then the project attached to
    the application default credentials. A missing project is logged, not raised.
    """
    for name in PROJECT_ID_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value

    try:
        _, project_id = google.auth.default()
    except DefaultCredentialsError:
        project_id = None

    if not project_id:
        logger.error("Google Cloud project ID not found in environment variables.")
    return project_id or None


__all__ = [
    "ClientConfig",
    "FunctionsConfig",
    "ServiceEndpoints",
    "resolve_project_id",
    "DEFAULT_PROJECT_ID",
    "GENERATE_FUNCTION_NAME",
]
