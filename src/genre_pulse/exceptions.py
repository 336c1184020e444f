"""Exception hierarchy for the Spotify API client.

Terminal errors propagate to the caller on first occurrence; retryable
errors are absorbed by the retry loop and only surface wrapped in
RequestExhaustedError or AuthenticationFailedError.
"""

from __future__ import annotations


class SpotifyApiError(Exception):
    """Base class for every error raised by genre-pulse."""


class ConfigurationError(SpotifyApiError):
    """Client credentials are missing. Never retried."""


class InvalidCredentialsError(SpotifyApiError):
    """Token endpoint rejected the credentials (HTTP 400/401)."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Invalid credentials (HTTP {status}): {body}")


class UpstreamError(SpotifyApiError):
    """Unexpected non-2xx status from Spotify."""

    def __init__(self, status: int, body: str = "", message: str | None = None) -> None:
        self.status = status
        self.body = body
        if message is None:
            message = f"Spotify returned HTTP {status}"
            if body:
                message += f": {body}"
        super().__init__(message)


class UpstreamServerError(UpstreamError):
    """5xx from a resource endpoint. Retried with backoff."""

    def __init__(self, status: int) -> None:
        super().__init__(status, message=f"Spotify server error (HTTP {status})")


class ProtocolError(SpotifyApiError):
    """A 2xx response whose body could not be used."""


class AuthenticationFailedError(SpotifyApiError):
    """Token acquisition failed on every attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Authentication failed after {attempts} attempts: {last_error}")


class ClientError(SpotifyApiError):
    """4xx other than 401/429. Terminal, never retried."""

    def __init__(self, status: int, message: str, endpoint: str = "") -> None:
        self.status = status
        self.message = message
        self.endpoint = endpoint
        where = f" for {endpoint}" if endpoint else ""
        super().__init__(f"API error (HTTP {status}){where}: {message}")


class RateLimitedError(SpotifyApiError):
    """429 from Spotify. Retried after the server-provided wait."""

    def __init__(self, retry_after: int | None = None) -> None:
        self.retry_after = retry_after
        hint = f"{retry_after}s" if retry_after is not None else "not provided"
        super().__init__(f"Rate limited (HTTP 429), Retry-After: {hint}")


class RequestExhaustedError(SpotifyApiError):
    """Every attempt of a logical request failed."""

    def __init__(self, endpoint: str, attempts: int, last_error: BaseException | None = None) -> None:
        self.endpoint = endpoint
        self.attempts = attempts
        self.last_error = last_error
        message = f"Request to {endpoint} failed after {attempts} attempts"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


class CatalogError(SpotifyApiError):
    """A resource method failed; the message names what was being fetched."""
