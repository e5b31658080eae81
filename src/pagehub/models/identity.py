from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field

# Tokens this close to expiry are refreshed before use.
TOKEN_REFRESH_MARGIN = timedelta(minutes=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthSession(BaseModel):
    """Signed-in visitor as issued by Firebase Authentication."""

    model_config = ConfigDict(frozen=True)

    uid: str
    id_token: str
    refresh_token: str
    expires_at: datetime = Field(default_factory=lambda: _utcnow() + timedelta(hours=1))
    is_anonymous: bool = True

    def needs_refresh(self, now: datetime | None = None) -> bool:
        now = now or _utcnow()
        return now + TOKEN_REFRESH_MARGIN >= self.expires_at

    def with_tokens(self, *, id_token: str, refresh_token: str, expires_in: int) -> "AuthSession":
        return self.model_copy(
            update={
                "id_token": id_token,
                "refresh_token": refresh_token,
                "expires_at": _utcnow() + timedelta(seconds=expires_in),
            }
        )


__all__ = ["AuthSession", "TOKEN_REFRESH_MARGIN"]
