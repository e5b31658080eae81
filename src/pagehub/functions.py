from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Protocol

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from google.auth import jwt
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from pydantic import ValidationError

from .config import GENERATE_FUNCTION_NAME, FunctionsConfig
from .logging_config import set_trace_id, trace_id_from_header
from .models.generation import GenerationRequest
from .secret_accessor import SecretAccessor

logger = logging.getLogger(__name__)

HTTP_STATUS = {
    "INVALID_ARGUMENT": 400,
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "INTERNAL": 500,
    "UNAVAILABLE": 503,
}


class HttpsError(Exception):
    """Error reported to callable clients as ``{"error": {"status", "message"}}``."""

    def __init__(self, status: str, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.status, 500)

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            {"error": {"status": self.status, "message": self.message}},
            status_code=self.http_status,
        )


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Mapping[str, Any]:
        ...


class SiteGenerator(Protocol):
    def generate(self, request: GenerationRequest) -> Mapping[str, Any]:
        ...


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens issued for the project."""

    def __init__(self, *, project_id: str | None, emulated: bool = False) -> None:
        self.project_id = project_id
        self.emulated = emulated
        self._transport = google_requests.Request()

    def verify(self, token: str) -> Mapping[str, Any]:
        if self.emulated:
            # The auth emulator issues unsigned tokens.
            return jwt.decode(token, verify=False)
        return id_token.verify_firebase_token(token, self._transport, audience=self.project_id)


class PendingSiteGenerator:
    """Stand-in generator until site synthesis exists."""

    message = "Website generation is not available yet."

    def generate(self, request: GenerationRequest) -> Mapping[str, Any]:
        logger.info(
            "Website generation requested but not available",
            extra={"uid": request.user_id},
        )
        return {"error": self.message}


def caller_uid(claims: Mapping[str, Any]) -> str | None:
    return claims.get("user_id") or claims.get("sub")


def create_functions_app(
    config: FunctionsConfig,
    *,
    generator: SiteGenerator | None = None,
    verifier: TokenVerifier | None = None,
) -> FastAPI:
    generator = generator or PendingSiteGenerator()
    verifier = verifier or FirebaseTokenVerifier(
        project_id=config.project_id, emulated=config.emulated
    )

    app = FastAPI(title="PageHub Functions", version="0.1.0")
    app.state.config = config
    app.state.secrets = SecretAccessor(project_id=config.project_id)

    def authenticate(request: Request) -> str:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise HttpsError(
                "UNAUTHENTICATED", "The function must be called while authenticated."
            )
        try:
            claims = verifier.verify(token)
        except ValueError as exc:
            logger.warning("Rejected ID token", extra={"error": str(exc)})
            raise HttpsError("UNAUTHENTICATED", "The ID token is invalid.") from exc

        uid = caller_uid(claims)
        if not uid:
            raise HttpsError("UNAUTHENTICATED", "The ID token has no user.")
        return uid

    async def parse_request(request: Request) -> GenerationRequest:
        try:
            body = await request.json()
        except ValueError as exc:
            raise HttpsError("INVALID_ARGUMENT", "Bad Request") from exc

        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise HttpsError("INVALID_ARGUMENT", "Request body must contain a data object.")

        try:
            return GenerationRequest.model_validate(body["data"])
        except ValidationError as exc:
            fields = ", ".join(str(err["loc"][-1]) for err in exc.errors())
            raise HttpsError("INVALID_ARGUMENT", f"Invalid fields: {fields}") from exc

    @app.post(f"/{GENERATE_FUNCTION_NAME}")
    async def generate_website_json(request: Request) -> JSONResponse:
        set_trace_id(
            trace_id_from_header(request.headers.get("X-Cloud-Trace-Context"), config.project_id)
        )
        try:
            uid = authenticate(request)
            generation_request = await parse_request(request)
            if generation_request.user_id != uid:
                raise HttpsError("PERMISSION_DENIED", "userId does not match the caller.")

            logger.info(
                "Generating website",
                extra={
                    "uid": uid,
                    "description_length": len(generation_request.description),
                },
            )
            result = await asyncio.to_thread(generator.generate, generation_request)
        except HttpsError as exc:
            return exc.to_response()
        except Exception as exc:
            logger.error(
                "Website generation failed",
                exc_info=True,
                extra={"error": str(exc)},
            )
            return HttpsError("INTERNAL", "INTERNAL").to_response()

        return JSONResponse({"result": dict(result)})

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


__all__ = [
    "create_functions_app",
    "FirebaseTokenVerifier",
    "HttpsError",
    "PendingSiteGenerator",
    "SiteGenerator",
    "TokenVerifier",
]
