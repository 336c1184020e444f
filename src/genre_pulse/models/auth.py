"""Auth-related data models."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, ConfigDict


class TokenResponse(BaseModel):
    """Response from the Spotify accounts token endpoint."""
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600


class SessionToken(BaseModel):
    """A cached bearer token. ``expires_at`` already includes the safety margin."""
    access_token: str
    expires_at: float  # epoch seconds

    model_config = ConfigDict(frozen=True)

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TokenStatus(BaseModel):
    """Current state of the cached access token."""
    has_token: bool
    is_expired: bool
    expires_at: datetime | None = None
    seconds_remaining: int | None = None
