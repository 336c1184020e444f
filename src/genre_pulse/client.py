"""Base API client for the Spotify Web API.

Handles bearer auth, request de-duplication, retry logic, rate limiting
and token renewal.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from genre_pulse.auth import TokenManager
from genre_pulse.config import Config
from genre_pulse.dedup import RequestDeduplicator, make_request_key
from genre_pulse.exceptions import RequestExhaustedError
from genre_pulse.retry import Action, classify_response, classify_transport_error

logger = logging.getLogger(__name__)


class SpotifyClient:
    """HTTP client for the Spotify Web API with retry and auth handling."""

    def __init__(
        self,
        config: Config,
        auth: TokenManager,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        retry_on_auth_error: bool = True,
    ) -> None:
        self._config = config
        self._auth = auth
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._retry_on_auth_error = retry_on_auth_error
        self._base_url = config.settings.base_url.rstrip("/")
        self._http = httpx.AsyncClient(timeout=config.settings.timeout)
        self._requests = RequestDeduplicator()
        self._sleep = asyncio.sleep

    @classmethod
    def from_config(cls, config: Config) -> SpotifyClient:
        """Build a client and its token manager from settings."""
        settings = config.settings
        auth = TokenManager(config, max_attempts=settings.max_retries, retry_delay=settings.retry_delay)
        return cls(
            config,
            auth,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            retry_on_auth_error=settings.retry_on_auth_error,
        )

    @property
    def auth(self) -> TokenManager:
        return self._auth

    async def request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        *,
        retry_on_auth_error: bool | None = None,
    ) -> Any:
        """GET an API endpoint and return its parsed JSON body.

        Identical concurrent calls (same endpoint and parameters, in any
        order) share one underlying request and receive the same outcome.

        Args:
            endpoint: API path (e.g. "/search"). Appended to the base URL.
            params: Query parameters.
            retry_on_auth_error: Override the client's 401 handling.

        Returns:
            The decoded JSON body.

        Raises:
            ConfigurationError: Credentials are missing.
            AuthenticationFailedError: No token could be acquired.
            ClientError: A non-retryable 4xx response.
            RequestExhaustedError: All retries were used up.
        """
        params = params or {}
        if retry_on_auth_error is None:
            retry_on_auth_error = self._retry_on_auth_error
        key = make_request_key(endpoint, params)
        return await self._requests.execute(
            key, lambda: self._execute(endpoint, params, retry_on_auth_error)
        )

    async def _execute(self, endpoint: str, params: dict[str, Any], retry_on_auth_error: bool) -> Any:
        """Run one logical request through the retry state machine."""
        url = self._base_url + endpoint
        query = sorted((k, str(v)) for k, v in params.items())
        last_error: Exception | None = None

        for attempt in range(1, self._max_retries + 1):
            token = await self._auth.get_token()
            logger.info(f"[Attempt {attempt}/{self._max_retries}] GET {endpoint} {dict(query)}")

            try:
                response = await self._http.get(
                    url,
                    params=query,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                    },
                )
            except httpx.HTTPError as e:
                decision = classify_transport_error(e, attempt, self._retry_delay)
            else:
                decision = classify_response(
                    response,
                    attempt,
                    endpoint=endpoint,
                    retry_on_auth_error=retry_on_auth_error,
                    retry_delay=self._retry_delay,
                )

            if decision.action is Action.SUCCESS:
                return decision.payload

            if decision.action is Action.FAIL:
                raise decision.error  # type: ignore[misc]

            last_error = decision.error

            # 401 — stale token, renew and go again without waiting
            if decision.action is Action.REAUTH:
                logger.warning("Got 401, renewing token and retrying...")
                self._auth.invalidate()
                continue

            if attempt < self._max_retries:
                logger.warning(f"{last_error}. Retrying {endpoint} in {decision.delay:.1f}s...")
                await self._sleep(decision.delay)

        raise RequestExhaustedError(endpoint, self._max_retries, last_error)

    def clear_auth_cache(self) -> None:
        """Drop the cached token and forget every in-flight request."""
        self._auth.invalidate()
        self._requests.clear()
        logger.info("Auth cache cleared")

    async def close(self) -> None:
        """Close the underlying HTTP clients."""
        await self._http.aclose()
        await self._auth.close()

    async def __aenter__(self) -> SpotifyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
