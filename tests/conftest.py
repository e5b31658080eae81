from __future__ import annotations

import base64
import json
from typing import Callable

import httpx
import pytest

from pagehub.config import ClientConfig, ServiceEndpoints


def _b64(data: dict) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@pytest.fixture()
def unsigned_token() -> Callable[..., str]:
    """Build a token shaped like the ones the auth emulator issues."""

    def build(uid: str, **claims) -> str:
        payload = {"sub": uid, "user_id": uid, "aud": "growmar", **claims}
        return f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(payload)}."

    return build


@pytest.fixture()
def client_config() -> ClientConfig:
    return ClientConfig(
        project_id="growmar",
        api_key="test-api-key",
        endpoints=ServiceEndpoints.production(),
    )


@pytest.fixture()
def auth_backend():
    """Fake Identity Toolkit / Secure Token endpoints.

    ``calls`` records every request path; set ``fail_sign_up`` to reject sign-ups.
    """

    class AuthBackend:
        def __init__(self) -> None:
            self.calls: list[httpx.Request] = []
            self.fail_sign_up = False
            self.next_uid = 1

        def handle(self, request: httpx.Request) -> httpx.Response | None:
            if request.url.path.endswith("/v1/accounts:signUp"):
                self.calls.append(request)
                if self.fail_sign_up:
                    return httpx.Response(
                        400, json={"error": {"code": 400, "message": "OPERATION_NOT_ALLOWED"}}
                    )
                uid = f"uid-{self.next_uid}"
                self.next_uid += 1
                return httpx.Response(
                    200,
                    json={
                        "localId": uid,
                        "idToken": f"id-token-{uid}",
                        "refreshToken": f"refresh-{uid}",
                        "expiresIn": "3600",
                    },
                )
            if request.url.path.endswith("/v1/token"):
                self.calls.append(request)
                return httpx.Response(
                    200,
                    json={
                        "id_token": "refreshed-id-token",
                        "refresh_token": "refreshed-refresh-token",
                        "expires_in": "3600",
                        "user_id": "uid-1",
                    },
                )
            return None

    return AuthBackend()
