"""Client-credentials authentication for the Spotify Web API.

Handles token acquisition, caching, expiry tracking and renewal retries.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from datetime import datetime

import httpx

from genre_pulse.config import Config
from genre_pulse.exceptions import (
    AuthenticationFailedError,
    ConfigurationError,
    InvalidCredentialsError,
    ProtocolError,
    SpotifyApiError,
    UpstreamError,
)
from genre_pulse.models.auth import SessionToken, TokenResponse, TokenStatus

logger = logging.getLogger(__name__)


# Tokens are treated as expired this many seconds before Spotify says so
EXPIRY_MARGIN = 60.0


class TokenManager:
    """Owns the cached Spotify access token."""

    def __init__(self, config: Config, max_attempts: int = 3, retry_delay: float = 1.0) -> None:
        self._config = config
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._token: SessionToken | None = None
        self._lock = asyncio.Lock()
        self._http = httpx.AsyncClient(timeout=config.settings.timeout)
        self._clock = time.time
        self._sleep = asyncio.sleep

    async def get_token(self) -> str:
        """Get a valid access token, acquiring a new one if needed.

        Concurrent callers share a single token exchange.

        Raises:
            ConfigurationError: Client ID or secret is empty.
            AuthenticationFailedError: Every attempt failed.
        """
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token.access_token

        async with self._lock:
            # Another caller may have renewed while we waited
            token = self._token
            if token is not None and token.is_valid(self._clock()):
                return token.access_token

            self._check_credentials()
            token = await self._acquire_with_retry()
            self._token = token
            return token.access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next call renews it."""
        self._token = None

    def get_status(self) -> TokenStatus:
        """Get the current token status."""
        if self._token is None:
            return TokenStatus(has_token=False, is_expired=True)

        now = self._clock()
        is_expired = not self._token.is_valid(now)
        seconds_remaining = None
        if not is_expired:
            seconds_remaining = int(self._token.expires_at - now)

        return TokenStatus(
            has_token=True,
            is_expired=is_expired,
            expires_at=datetime.fromtimestamp(self._token.expires_at),
            seconds_remaining=seconds_remaining,
        )

    def _check_credentials(self) -> None:
        settings = self._config.settings
        if not settings.client_id.strip() or not settings.client_secret.strip():
            raise ConfigurationError(
                "Spotify credentials missing. "
                "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET in your .env"
            )

    async def _acquire_with_retry(self) -> SessionToken:
        for attempt in range(1, self._max_attempts + 1):
            try:
                token = await self._request_token()
            except (SpotifyApiError, httpx.HTTPError) as e:
                logger.warning(f"Authentication attempt {attempt}/{self._max_attempts} failed: {e}")
                if attempt == self._max_attempts:
                    self._token = None
                    logger.error(f"Giving up on authentication after {attempt} attempts")
                    raise AuthenticationFailedError(attempt, e) from e
                await self._sleep(self._retry_delay * attempt)
                continue

            logger.info("Spotify access token acquired")
            return token

        raise AuthenticationFailedError(self._max_attempts, ProtocolError("no attempts made"))

    async def _request_token(self) -> SessionToken:
        """Exchange the client credentials for an access token."""
        settings = self._config.settings
        raw = f"{settings.client_id.strip()}:{settings.client_secret.strip()}".encode()
        basic = base64.b64encode(raw).decode("ascii")

        response = await self._http.post(
            settings.token_url,
            headers={
                "Authorization": f"Basic {basic}",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            data={"grant_type": "client_credentials"},
        )

        if not response.is_success:
            if response.status_code in (400, 401):
                raise InvalidCredentialsError(response.status_code, response.text)
            raise UpstreamError(response.status_code, response.text)

        try:
            data = response.json()
            if not isinstance(data, dict) or not data.get("access_token"):
                raise ValueError("no access_token in response")
            token_data = TokenResponse.model_validate(data)
        except ValueError as e:
            raise ProtocolError("malformed token response") from e

        expires_at = self._clock() + token_data.expires_in - EXPIRY_MARGIN
        return SessionToken(access_token=token_data.access_token, expires_at=expires_at)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()
